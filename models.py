"""
Route Planner SQLAlchemy Models
Orders booked through the planner and the profiles that own them.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import (
    Column, String, Float, Integer, Text, DateTime, ForeignKey, JSON,
    CheckConstraint,
)
from sqlalchemy.orm import relationship
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()

ORDER_STATUSES = ("pending", "confirmed", "completed", "cancelled")
PROFILE_ROLES = ("admin", "user")

# Gateway payment states. Lowercase aliases are accepted on input.
PAYMENT_STATUSES = (
    "CREATED",    # payment created but not yet processed
    "PENDING",    # payment is being processed
    "PAID",       # payment was successfully completed
    "CANCELED",   # payment was canceled by the payer
    "TIMEOUTED",  # payment expired
    "REFUNDED",
    "FAILED",
    "UNKNOWN",
)
_PAYMENT_STATUS_ALIASES = {
    "timed-out": "TIMEOUTED",
    "timed_out": "TIMEOUTED",
    "timeout": "TIMEOUTED",
    "cancelled": "CANCELED",
}


def generate_uuid():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


def normalize_payment_status(status):
    """Map a gateway or user supplied payment state onto PAYMENT_STATUSES."""
    if not status:
        return "UNKNOWN"
    raw = str(status).strip()
    alias = _PAYMENT_STATUS_ALIASES.get(raw.lower())
    if alias:
        return alias
    upper = raw.upper()
    return upper if upper in PAYMENT_STATUSES else "UNKNOWN"


def _iso(value):
    return value.isoformat() if value else None


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------
class Profile(db.Model):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    role = Column(String(20), nullable=False, default="user")
    password_hash = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    orders = relationship("Order", back_populates="owner", lazy="dynamic")

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'user')", name="ck_profiles_role"),
    )

    def __repr__(self):
        return f'<Profile {self.email} ({self.role})>'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        if not self.password_hash:
            return False
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == "admin"

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "role": self.role,
            "created_at": _iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# Order
# ---------------------------------------------------------------------------
class Order(db.Model):
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    customer_name = Column(Text, nullable=False)
    customer_email = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    pickup_date = Column(Text, nullable=False)
    pickup_time = Column(Text, nullable=False)
    start_address = Column(Text, nullable=False)
    end_address = Column(Text, nullable=False)
    start_point = Column(JSON, nullable=False)  # [lat, lng]
    end_point = Column(JSON, nullable=False)    # [lat, lng]
    distance = Column(Float, nullable=False)    # meters
    price = Column(Integer, nullable=False)
    additional_notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    status = Column(String(20), nullable=False, default="pending")
    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True)

    payment_id = Column(Text, nullable=True, index=True)
    payment_status = Column(String(20), nullable=True)
    payment_url = Column(Text, nullable=True)

    owner = relationship("Profile", back_populates="orders")

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'confirmed', 'completed', 'cancelled')",
            name="ck_orders_status",
        ),
        CheckConstraint("distance >= 0", name="ck_orders_distance"),
    )

    def __repr__(self):
        return f'<Order {self.id} ({self.status})>'

    def to_dict(self):
        return {
            "id": self.id,
            "customer_name": self.customer_name,
            "customer_email": self.customer_email,
            "customer_phone": self.customer_phone,
            "pickup_date": self.pickup_date,
            "pickup_time": self.pickup_time,
            "start_address": self.start_address,
            "end_address": self.end_address,
            "start_point": list(self.start_point) if self.start_point else None,
            "end_point": list(self.end_point) if self.end_point else None,
            "distance": self.distance,
            "price": self.price,
            "additional_notes": self.additional_notes,
            "created_at": _iso(self.created_at),
            "status": self.status,
            "user_id": self.user_id,
            "payment_id": self.payment_id,
            "payment_status": self.payment_status,
            "payment_url": self.payment_url,
        }


# ---------------------------------------------------------------------------
# PaymentInfo (transient, folded into Order.payment_* columns)
# ---------------------------------------------------------------------------
@dataclass
class PaymentInfo:
    id: str
    order_id: str
    amount: int  # minor units
    currency: str
    status: str
    gateway_url: str
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "order_id": self.order_id,
            "amount": self.amount,
            "currency": self.currency,
            "status": self.status,
            "gateway_url": self.gateway_url,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
