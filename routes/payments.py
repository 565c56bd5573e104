"""
Payment gateway callbacks for the Route Planner.
"""

import logging

from flask import Blueprint, request, jsonify

from order_store import OrderStoreError
from services import get_gateway_service, get_order_store

logger = logging.getLogger(__name__)

webhook_bp = Blueprint("webhooks", __name__, url_prefix="/api")


@webhook_bp.route("/gopay-callback", methods=["POST"])
def gopay_callback():
    """
    Handle a GoPay payment notification.
    Header: x-gopay-signature
    Body JSON: order_number, payment_id, state
    """
    signature = request.headers.get("x-gopay-signature", "")
    raw_body = request.get_data()

    if not signature or not get_gateway_service().verify_callback_signature(raw_body, signature):
        return jsonify({"success": False, "error": "Invalid signature"}), 401

    data = request.get_json(silent=True) or {}
    order_number = data.get("order_number")
    payment_id = data.get("payment_id")
    state = data.get("state")

    logger.info(
        "GoPay callback received: order_number=%s payment_id=%s state=%s",
        order_number, payment_id, state,
    )

    if payment_id and state:
        store = get_order_store()
        try:
            order = store.find_by_payment_id(str(payment_id))
            if order is not None:
                store.update_payment_status(order["id"], state)
            else:
                logger.info("GoPay callback for unknown payment %s", payment_id)
        except OrderStoreError:
            logger.exception("Error processing GoPay callback for payment %s", payment_id)
            return jsonify({"success": False, "error": "Failed to process callback"}), 500

    return jsonify({"success": True}), 200
