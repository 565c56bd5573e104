"""
Payment result poll.

Run once when the customer lands on ``/payment-result``: read the order,
ask the gateway for the current payment state and store it. There is no
retry loop; reloading the page polls again.
"""

import logging
from collections import namedtuple

logger = logging.getLogger(__name__)

PaymentResult = namedtuple("PaymentResult", ["order", "payment_status"])


def poll_payment_result(store, gateway, order_id):
    """Return the (possibly updated) order and its payment state.

    ``order`` is None when the order does not exist. Gateway failures are
    logged and reported as ``UNKNOWN``.
    """
    order = store.get_by_id(order_id, use_cache=False)
    if order is None:
        return PaymentResult(order=None, payment_status="UNKNOWN")

    payment_id = order.get("payment_id")
    if not payment_id:
        return PaymentResult(order=order, payment_status="UNKNOWN")

    try:
        status = gateway.get_status(payment_id)
    except Exception:
        logger.exception("Error checking payment status for order %s", order_id)
        return PaymentResult(order=order, payment_status="UNKNOWN")

    updated = store.update_payment_status(order_id, status)
    return PaymentResult(order=updated or order, payment_status=(updated or order)["payment_status"])
