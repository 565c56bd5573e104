"""
Per-application service objects.

Gateways and adapters are built once per app and kept in
``app.extensions``; an ``OrderStore`` is built per request because it is
bound to the requesting principal.
"""

from flask import current_app

from access import principal_for
from geocoding import Geocoder
from models import db
from notifications import Notifier
from order_store import OrderStore
from payment_gateway import get_gateway
from routing import RouteService

_EXTENSION_KEY = "routeplanner"


def init_services(app):
    app.extensions[_EXTENSION_KEY] = {
        "gateway": get_gateway(app.config),
        "notifier": Notifier(app.config),
        "geocoder": Geocoder.from_config(app.config),
        "route_service": RouteService.from_config(app.config),
    }


def _service(name):
    return current_app.extensions[_EXTENSION_KEY][name]


def get_gateway_service():
    return _service("gateway")


def get_notifier():
    return _service("notifier")


def get_geocoder():
    return _service("geocoder")


def get_route_service():
    return _service("route_service")


def get_order_store(profile=None):
    """OrderStore bound to ``profile`` (None for anonymous callers)."""
    return OrderStore(
        db.session,
        get_gateway_service(),
        notifier=get_notifier(),
        principal=principal_for(profile),
        config=current_app.config,
    )
