"""
Payment gateway adapters.

``PaymentGateway`` is the capability every provider implements:
create a payment session, read its status, verify a callback signature.
Two variants exist, selected by ``PAYMENT_PROVIDER``:

- ``mock``  -- a local test double. No network calls, deterministic status.
- ``gopay`` -- the GoPay REST API (OAuth2 client credentials).
"""

import base64
import hashlib
import hmac
import json
import logging
import time
import uuid

import requests

from models import PaymentInfo, normalize_payment_status
from pricing import to_minor_units

logger = logging.getLogger(__name__)


class PaymentError(Exception):
    """Raised when the gateway cannot create or report a payment."""


def order_summary(order, description=None):
    """Build the payload a gateway needs from an Order row."""
    return {
        "id": order.id,
        "customer_name": order.customer_name,
        "customer_email": order.customer_email,
        "price": order.price,
        "description": description or "Transportation from {} to {}".format(
            order.start_address, order.end_address
        ),
    }


def payment_result_url(base_url, order_id, mock=False):
    url = "{}/payment-result?orderId={}".format(base_url.rstrip("/"), order_id)
    if mock:
        url += "&mockPayment=true"
    return url


class PaymentGateway:
    currency = "CZK"

    def create_payment(self, summary):
        raise NotImplementedError

    def get_status(self, payment_id):
        raise NotImplementedError

    def verify_callback_signature(self, body, signature):
        raise NotImplementedError


class MockPaymentGateway(PaymentGateway):
    """Test double standing in for a real gateway.

    Payments are never charged. ``get_status`` reports ``status`` for ids this
    gateway issued and ``UNKNOWN`` for anything else.
    """

    ID_PREFIX = "mock_payment_"

    def __init__(self, base_url, status="PAID", currency="CZK"):
        self.base_url = base_url
        self.status = normalize_payment_status(status)
        self.currency = currency

    def create_payment(self, summary):
        payment_id = "{}{}".format(self.ID_PREFIX, uuid.uuid4().hex[:8])
        logger.info("Created mock payment %s for order %s", payment_id, summary["id"])
        return PaymentInfo(
            id=payment_id,
            order_id=summary["id"],
            amount=to_minor_units(summary["price"]),
            currency=self.currency,
            status="CREATED",
            gateway_url=payment_result_url(self.base_url, summary["id"], mock=True),
        )

    def get_status(self, payment_id):
        if payment_id and payment_id.startswith(self.ID_PREFIX):
            return self.status
        return "UNKNOWN"

    def verify_callback_signature(self, body, signature):
        return bool(signature)


class GoPayGateway(PaymentGateway):
    """GoPay REST API client."""

    TOKEN_SCOPE = "payment-all"

    def __init__(self, api_url, client_id, client_secret, goid, base_url,
                 currency="CZK", timeout=10, session=None):
        self.api_url = api_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.goid = goid
        self.base_url = base_url
        self.currency = currency
        self.timeout = timeout
        self.session = session or requests.Session()
        self._token = None
        self._token_expires_at = 0.0

    def _get_token(self):
        """Fetch (or reuse) an OAuth access token."""
        if self._token and time.time() < self._token_expires_at:
            return self._token

        try:
            response = self.session.post(
                "{}/oauth2/token".format(self.api_url),
                auth=(self.client_id, self.client_secret),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
                data={"grant_type": "client_credentials", "scope": self.TOKEN_SCOPE},
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Error getting GoPay token: %s", e)
            raise PaymentError("Failed to authenticate with GoPay") from e

        if not isinstance(data, dict) or not data.get("access_token"):
            logger.error("GoPay token response missing access_token")
            raise PaymentError("Failed to authenticate with GoPay")
        try:
            expires_in = int(data.get("expires_in", 1800))
        except (TypeError, ValueError):
            expires_in = 1800

        self._token = data["access_token"]
        # Refresh a minute early
        self._token_expires_at = time.time() + expires_in - 60
        return self._token

    def _headers(self):
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": "Bearer {}".format(self._get_token()),
        }

    def build_payment_payload(self, summary):
        name_parts = (summary.get("customer_name") or "").split()
        first_name = name_parts[0] if name_parts else ""
        last_name = " ".join(name_parts[1:]) or summary.get("customer_name") or ""
        amount = to_minor_units(summary["price"])

        return {
            "payer": {
                "default_payment_instrument": "PAYMENT_CARD",
                "allowed_payment_instruments": ["PAYMENT_CARD", "BANK_ACCOUNT"],
                "contact": {
                    "first_name": first_name,
                    "last_name": last_name,
                    "email": summary.get("customer_email", ""),
                    "country_code": "CZE",
                },
            },
            "target": {"type": "ACCOUNT", "goid": self.goid},
            "amount": amount,
            "currency": self.currency,
            "order_number": "ORDER-{}".format(summary["id"][:8]),
            "order_description": summary.get("description", ""),
            "items": [{"name": "Route Transportation", "amount": amount, "count": 1}],
            "callback": {
                "return_url": payment_result_url(self.base_url, summary["id"]),
                "notification_url": "{}/api/gopay-callback".format(self.base_url.rstrip("/")),
            },
            "lang": "CS",
        }

    def create_payment(self, summary):
        payload = self.build_payment_payload(summary)
        try:
            response = self.session.post(
                "{}/payments/payment".format(self.api_url),
                headers=self._headers(),
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Error creating GoPay payment for order %s: %s", summary["id"], e)
            raise PaymentError("Failed to create payment") from e

        if not isinstance(data, dict) or data.get("id") is None or not data.get("gw_url"):
            logger.error("GoPay payment response for order %s missing id or gw_url", summary["id"])
            raise PaymentError("Failed to create payment")

        return PaymentInfo(
            id=str(data["id"]),
            order_id=summary["id"],
            amount=payload["amount"],
            currency=self.currency,
            status=normalize_payment_status(data.get("state", "CREATED")),
            gateway_url=data["gw_url"],
        )

    def get_status(self, payment_id):
        try:
            response = self.session.get(
                "{}/payments/payment/{}".format(self.api_url, payment_id),
                headers=self._headers(),
                timeout=self.timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.error("Error getting payment status for %s: %s", payment_id, e)
            raise PaymentError("Failed to get payment status") from e
        if not isinstance(data, dict):
            raise PaymentError("Failed to get payment status")
        return normalize_payment_status(data.get("state"))

    def sign(self, body):
        """Base64 HMAC-SHA256 of the JSON-encoded callback body."""
        if isinstance(body, (bytes, str)):
            raw = body.encode("utf-8") if isinstance(body, str) else body
        else:
            raw = json.dumps(body, separators=(",", ":")).encode("utf-8")
        digest = hmac.new(self.client_secret.encode("utf-8"), raw, hashlib.sha256).digest()
        return base64.b64encode(digest).decode("ascii")

    def verify_callback_signature(self, body, signature):
        if not self.client_secret:
            logger.error("GoPay client secret not configured")
            return False
        if not signature:
            return False
        return hmac.compare_digest(self.sign(body), signature)


def get_gateway(config):
    """Build the gateway selected by ``PAYMENT_PROVIDER``."""
    provider = (config.get("PAYMENT_PROVIDER") or "mock").lower()
    if provider == "gopay":
        return GoPayGateway(
            api_url=config["GOPAY_API_URL"],
            client_id=config["GOPAY_CLIENT_ID"],
            client_secret=config["GOPAY_CLIENT_SECRET"],
            goid=config["GOPAY_GOID"],
            base_url=config["PUBLIC_BASE_URL"],
            currency=config.get("CURRENCY", "CZK"),
            timeout=config.get("HTTP_TIMEOUT", 10),
        )
    if provider != "mock":
        logger.warning("Unknown PAYMENT_PROVIDER %r, using mock gateway", provider)
    return MockPaymentGateway(
        base_url=config["PUBLIC_BASE_URL"],
        status=config.get("MOCK_PAYMENT_STATUS", "PAID"),
        currency=config.get("CURRENCY", "CZK"),
    )
