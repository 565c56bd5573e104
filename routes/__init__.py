"""
Route Planner Blueprints
"""
from auth_routes import auth_bp
from .booking import booking_bp
from .geocode import geocode_bp
from .orders import orders_bp
from .email import email_bp
from .payments import webhook_bp
from .pages import pages_bp

__all__ = [
    "auth_bp",
    "booking_bp",
    "geocode_bp",
    "orders_bp",
    "email_bp",
    "webhook_bp",
    "pages_bp",
]
