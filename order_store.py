"""
Order store: persistence of orders and their payment fields.

An ``OrderStore`` is built per caller (see ``get_order_store`` in
``services.py``) with the database session, payment gateway, notifier and the
requesting principal. It keeps an in-memory copy of the last fetched order
list, which ``list()`` replaces wholesale.

Every operation is an independent round-trip. There is no transactional
grouping across operations: an order whose payment session could not be
created stays persisted without payment fields.
"""

import logging
from collections import namedtuple
from types import SimpleNamespace

from sqlalchemy.exc import SQLAlchemyError

from access import (
    AccessDenied, scope_select, can_select, check_insert, check_update,
    check_payment_update, check_delete,
)
from models import Order, ORDER_STATUSES, normalize_payment_status
from payment_gateway import order_summary, payment_result_url
from pricing import calculate_price, DEFAULT_RATE_PER_KM

logger = logging.getLogger(__name__)

CreateResult = namedtuple(
    "CreateResult",
    ["order_id", "payment_url", "admin_notified", "admin_mailto"],
    defaults=(None, None),
)

REQUIRED_FIELDS = (
    "customer_name", "customer_email", "customer_phone",
    "pickup_date", "pickup_time",
    "start_address", "end_address", "start_point", "end_point",
    "distance",
)


class OrderStoreError(Exception):
    """Raised when the database rejects an order operation."""


def _point(value, name):
    try:
        lat, lng = value
        return [float(lat), float(lng)]
    except (TypeError, ValueError):
        raise ValueError("{} must be a [lat, lng] pair".format(name))


class OrderStore:
    def __init__(self, session, gateway, notifier=None, principal=None, config=None):
        self.session = session
        self.gateway = gateway
        self.notifier = notifier
        self.principal = principal
        self.config = config or {}
        self.orders = []

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------
    def _commit(self, action):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.exception("Error %s", action)
            raise OrderStoreError("Failed {}".format(action)) from e

    def _cached(self, order_id):
        for order in self.orders:
            if order["id"] == order_id:
                return order
        return None

    def _sync_cache(self, order):
        cached = self._cached(order.id)
        if cached is not None:
            cached.update(order.to_dict())

    def _fetch(self, order_id):
        try:
            order = self.session.get(Order, order_id)
        except SQLAlchemyError as e:
            logger.exception("Error fetching order %s", order_id)
            raise OrderStoreError("Failed to fetch order") from e
        if order is None or not can_select(self.principal, order):
            return None
        return order

    def _notify(self, order):
        """Send the new-order emails.

        Returns ``(admin_notified, admin_mailto)``: ``admin_notified`` is None
        while delivery is still pending in the background, and the mailto
        link is handed back whenever delivery to the admin is not confirmed.
        """
        if self.notifier is None:
            return None, None
        admin_result = self.notifier.dispatch_order_notifications(order)
        admin_notified = admin_result["sent"] if admin_result else None
        if admin_notified:
            return True, None
        mailto = (admin_result or {}).get("mailto") or self.notifier.build_admin_mailto(order)
        return admin_notified, mailto

    @property
    def base_url(self):
        return self.config.get("PUBLIC_BASE_URL", "")

    # -----------------------------------------------------------------------
    # Operations
    # -----------------------------------------------------------------------
    def create(self, fields):
        """Persist a new order, open a payment session and send notifications."""
        missing = [f for f in REQUIRED_FIELDS if fields.get(f) in (None, "")]
        if missing:
            raise ValueError("Missing required fields: {}".format(", ".join(missing)))

        user_id = fields.get("user_id")
        if user_id is None and self.principal is not None:
            user_id = self.principal.user_id
        check_insert(self.principal, user_id)

        distance = float(fields["distance"])
        order = Order(
            customer_name=fields["customer_name"],
            customer_email=fields["customer_email"],
            customer_phone=fields["customer_phone"],
            pickup_date=fields["pickup_date"],
            pickup_time=fields["pickup_time"],
            start_address=fields["start_address"],
            end_address=fields["end_address"],
            start_point=_point(fields["start_point"], "start_point"),
            end_point=_point(fields["end_point"], "end_point"),
            distance=distance,
            price=calculate_price(distance, self.config.get("PRICE_PER_KM", DEFAULT_RATE_PER_KM)),
            additional_notes=fields.get("additional_notes") or None,
            status="pending",
            user_id=user_id,
        )
        self.session.add(order)
        self._commit("creating order")
        order_id = order.id

        payment_url = None
        try:
            payment = self.gateway.create_payment(order_summary(order))
        except Exception:
            # Continue with order creation even if payment fails
            logger.exception("Payment creation error for order %s", order_id)
            payment = None

        if payment is not None:
            payment_url = payment.gateway_url
            order.payment_id = payment.id
            order.payment_status = "CREATED"
            order.payment_url = payment.gateway_url
            try:
                self.session.commit()
            except SQLAlchemyError:
                self.session.rollback()
                logger.exception("Error updating order %s with payment info", order_id)

        if not payment_url:
            payment_url = payment_result_url(self.base_url, order_id)

        snapshot = order.to_dict()
        admin_notified, admin_mailto = self._notify(SimpleNamespace(**snapshot))

        if self._cached(order_id) is None:
            self.orders.insert(0, snapshot)

        logger.info("Order %s created (price %s, payment %s)", order_id, order.price, order.payment_id)
        return CreateResult(
            order_id=order_id,
            payment_url=payment_url,
            admin_notified=admin_notified,
            admin_mailto=admin_mailto,
        )

    def list(self):
        """Fetch all visible orders, newest first, replacing the cache."""
        query = scope_select(
            self.session.query(Order),
            self.principal,
            allow_anonymous_list=self.config.get("ALLOW_ANONYMOUS_ORDER_LIST", False),
        )
        try:
            rows = query.order_by(Order.created_at.desc()).all()
        except SQLAlchemyError as e:
            logger.exception("Error fetching orders")
            raise OrderStoreError("Failed to fetch orders") from e
        self.orders = [row.to_dict() for row in rows]
        return self.orders

    def get_by_id(self, order_id, use_cache=True):
        """Return the order dict from the cache or the database, or None."""
        if use_cache:
            cached = self._cached(order_id)
            if cached is not None:
                return cached
        order = self._fetch(order_id)
        return order.to_dict() if order is not None else None

    def update_status(self, order_id, status):
        if status not in ORDER_STATUSES:
            raise ValueError("Invalid status: {}".format(status))
        order = self._fetch(order_id)
        if order is None:
            return None
        check_update(self.principal, order, status)
        return self._apply_status(order, status)

    def _apply_status(self, order, status):
        order.status = status
        self._commit("updating order status")
        self._sync_cache(order)
        logger.info("Order %s status -> %s", order.id, status)
        return order.to_dict()

    def update_payment_status(self, order_id, payment_status):
        """Persist a payment state; ``PAID`` confirms the order."""
        payment_status = normalize_payment_status(payment_status)
        order = self._fetch(order_id)
        if order is None:
            return None
        check_payment_update(self.principal, order)

        order.payment_status = payment_status
        self._commit("updating payment status")
        self._sync_cache(order)

        if payment_status == "PAID" and order.status != "confirmed":
            return self._apply_status(order, "confirmed")
        return order.to_dict()

    def find_by_payment_id(self, payment_id):
        try:
            order = self.session.query(Order).filter_by(payment_id=payment_id).first()
        except SQLAlchemyError as e:
            raise OrderStoreError("Failed to fetch order") from e
        return order.to_dict() if order is not None else None

    def delete(self, order_id):
        order = self._fetch(order_id)
        if order is None:
            return False
        check_delete(self.principal, order)
        self.session.delete(order)
        self._commit("deleting order")
        self.orders = [o for o in self.orders if o["id"] != order_id]
        logger.info("Order %s deleted", order_id)
        return True


__all__ = ["OrderStore", "OrderStoreError", "CreateResult", "AccessDenied"]
