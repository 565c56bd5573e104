"""
Booking API routes for the Route Planner.
Customer booking flow: quote a route, then submit details to create the
order and receive the payment redirect URL.
"""

import logging

from flask import Blueprint, request, jsonify, current_app

from access import AccessDenied
from auth_routes import optional_auth
from booking import BookingWorkflow
from extensions import limiter
from geocoding import GeocodingError
from order_store import OrderStoreError
from services import get_geocoder, get_route_service, get_order_store

logger = logging.getLogger(__name__)

booking_bp = Blueprint("booking", __name__, url_prefix="/api/booking")

CUSTOMER_FIELDS = (
    "customer_name", "customer_email", "customer_phone",
    "pickup_date", "pickup_time", "additional_notes",
)


def _endpoint(data, name):
    value = data.get(name)
    return value if isinstance(value, dict) else {}


def _planned_workflow(data, profile):
    """Build a workflow from the request and compute its route.

    Returns ``(workflow, error_response)``; exactly one is None.
    """
    workflow = BookingWorkflow(
        get_geocoder(),
        get_route_service(),
        get_order_store(profile),
        rate_per_km=current_app.config["PRICE_PER_KM"],
    )
    start, end = _endpoint(data, "start"), _endpoint(data, "end")

    if not (start.get("confirmed") and end.get("confirmed")):
        return None, (jsonify({
            "error": "Select both the start and end address before planning the route",
        }), 400)

    start_address = _address(start)
    end_address = _address(end)
    if not start_address or not end_address:
        return None, (jsonify({"error": "Both addresses are required"}), 400)

    try:
        start_coords = _coords(start)
        end_coords = _coords(end)
        if start_coords is None and end_coords is None:
            start_hit, end_hit = get_geocoder().geocode_pair(start_address, end_address)
            start_coords = (start_hit.lat, start_hit.lng)
            end_coords = (end_hit.lat, end_hit.lng)
        elif start_coords is None:
            hit = get_geocoder().geocode(start_address)
            start_coords = (hit.lat, hit.lng)
        elif end_coords is None:
            hit = get_geocoder().geocode(end_address)
            end_coords = (hit.lat, hit.lng)
    except ValueError as e:
        return None, (jsonify({"error": str(e)}), 400)
    except GeocodingError as e:
        return None, (jsonify({"error": str(e)}), 422)

    workflow.confirm_address("start", start_address, *start_coords)
    workflow.confirm_address("end", end_address, *end_coords)

    if not workflow.compute_route():
        return None, (jsonify({"error": workflow.error}), 422)
    return workflow, None


def _coords(endpoint):
    """``(lat, lng)`` from an endpoint, or None when either is missing.

    Raises ValueError for non-numeric or out-of-range values.
    """
    lat, lng = endpoint.get("lat"), endpoint.get("lng")
    if lat is None or lng is None:
        return None
    if isinstance(lat, bool) or isinstance(lng, bool):
        raise ValueError("Coordinates must be numbers")
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        raise ValueError("Coordinates must be numbers")
    # NaN fails both comparisons
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValueError("Coordinates out of range")
    return lat, lng


def _address(endpoint):
    value = endpoint.get("address")
    return value.strip() if isinstance(value, str) else ""


@booking_bp.route("/quote", methods=["POST"])
@optional_auth
def quote(profile):
    """
    Quote a route.

    Body JSON:
        start: { address: str, lat?: float, lng?: float, confirmed: bool }
        end:   { address: str, lat?: float, lng?: float, confirmed: bool }
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    workflow, error = _planned_workflow(data, profile)
    if error:
        return error

    return jsonify({
        "success": True,
        "start": workflow.start.to_dict(),
        "end": workflow.end.to_dict(),
        "distance": workflow.distance,
        "duration": workflow.duration,
        "price": workflow.price,
        "currency": current_app.config["CURRENCY"],
    }), 200


@booking_bp.route("/submit", methods=["POST"])
@limiter.limit("10 per minute")
@optional_auth
def submit(profile):
    """
    Validate customer details and create the order.

    Body JSON: start, end (as for /quote) plus customer_name, customer_email,
    customer_phone, pickup_date, pickup_time, additional_notes?
    Returns the order id and the URL the customer should be sent to for payment.
    """
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({"error": "Request body must be a JSON object"}), 400
    workflow, error = _planned_workflow(data, profile)
    if error:
        return error

    form = {field: data.get(field) for field in CUSTOMER_FIELDS}
    if not workflow.submit_details(form):
        return jsonify({"error": "Invalid customer details", "errors": workflow.field_errors}), 400

    try:
        payment_url = workflow.confirm_payment()
    except AccessDenied as e:
        return jsonify({"error": str(e)}), 403
    except OrderStoreError:
        return jsonify({"error": "Failed to create order"}), 500

    return jsonify({
        "success": True,
        "order_id": workflow.result.order_id,
        "payment_url": payment_url,
        "admin_notified": workflow.result.admin_notified,
        "admin_mailto": workflow.result.admin_mailto,
        "price": workflow.price,
        "distance": workflow.distance,
        "currency": current_app.config["CURRENCY"],
    }), 201
