"""
Order API routes for the Route Planner.
Listing and mutation are scoped by the row-level access policy; status
changes and deletion are admin actions.
"""

from flask import Blueprint, request, jsonify, current_app

from access import AccessDenied
from admin_orders import AdminOrders
from auth_routes import optional_auth, require_auth, require_admin
from order_store import OrderStoreError
from payment_result import poll_payment_result
from services import get_order_store, get_gateway_service

orders_bp = Blueprint("orders", __name__, url_prefix="/api/orders")


@orders_bp.errorhandler(AccessDenied)
def _access_denied(e):
    return jsonify({"error": str(e)}), 403


@orders_bp.errorhandler(OrderStoreError)
def _store_error(e):
    return jsonify({"error": str(e)}), 500


@orders_bp.route("", methods=["GET"])
@optional_auth
def list_orders(profile):
    """
    List orders visible to the caller, newest first.
    GET /api/orders?status=pending&q=prague&sort=price&order=asc
    """
    if profile is None and not _anonymous_list_allowed():
        return jsonify({"error": "Unauthorized"}), 401

    admin = AdminOrders(get_order_store(profile))
    admin.load()

    sort = request.args.get("sort", "created_at")
    descending = request.args.get("order", "desc").lower() != "asc"
    try:
        orders = admin.view(
            status=request.args.get("status"),
            search=request.args.get("q"),
            sort=sort,
            descending=descending,
        )
    except ValueError as e:
        return jsonify({"error": str(e)}), 400

    return jsonify({"success": True, "orders": orders, "total": len(orders)}), 200


def _anonymous_list_allowed():
    return current_app.config.get("ALLOW_ANONYMOUS_ORDER_LIST", False)


@orders_bp.route("/stats", methods=["GET"])
@require_admin
def order_stats(profile):
    admin = AdminOrders(get_order_store(profile))
    admin.load()
    return jsonify({"success": True, "stats": admin.stats()}), 200


@orders_bp.route("/<order_id>", methods=["GET"])
@optional_auth
def get_order(profile, order_id):
    order = get_order_store(profile).get_by_id(order_id)
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"success": True, "order": order}), 200


@orders_bp.route("/<order_id>/status", methods=["PATCH"])
@require_admin
def update_order_status(profile, order_id):
    """Body JSON: status (pending | confirmed | completed | cancelled)"""
    data = request.get_json(silent=True) or {}
    try:
        order = get_order_store(profile).update_status(order_id, data.get("status"))
    except ValueError as e:
        return jsonify({"error": str(e)}), 400
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"success": True, "order": order}), 200


@orders_bp.route("/<order_id>", methods=["DELETE"])
@require_admin
def delete_order(profile, order_id):
    if not get_order_store(profile).delete(order_id):
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"success": True}), 200


@orders_bp.route("/<order_id>/payment-status", methods=["POST"])
@optional_auth
def refresh_payment_status(profile, order_id):
    """Poll the gateway once and store the order's current payment state."""
    result = poll_payment_result(get_order_store(profile), get_gateway_service(), order_id)
    if result.order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({
        "success": True,
        "payment_status": result.payment_status,
        "order": result.order,
    }), 200


@orders_bp.route("/<order_id>/cancel", methods=["POST"])
@require_auth
def cancel_order(profile, order_id):
    """Owners may cancel their own orders; admins may cancel any."""
    order = get_order_store(profile).update_status(order_id, "cancelled")
    if order is None:
        return jsonify({"error": "Order not found"}), 404
    return jsonify({"success": True, "order": order}), 200
