"""
HTTP client for the payment gateway's REST API (Razorpay-compatible).

Only the calls this backend makes are wrapped: create an order, list an
order's payments, and refund a payment. Amounts are integer minor units.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Any, Optional

import requests
from django.conf import settings

from core_backend.exceptions import GatewayError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GatewayConfig:
    key_id: str
    key_secret: str
    webhook_secret: str = ""
    base_url: str = "https://api.razorpay.com/v1"
    timeout: float = 10.0
    currency: str = "INR"
    name: str = "razorpay"

    @classmethod
    def from_settings(cls) -> "GatewayConfig":
        conf = settings.PAYMENT_GATEWAY
        return cls(
            key_id=conf.get("KEY_ID", ""),
            key_secret=conf.get("KEY_SECRET", ""),
            webhook_secret=conf.get("WEBHOOK_SECRET", ""),
            base_url=conf.get("BASE_URL", cls.base_url).rstrip("/"),
            timeout=float(conf.get("TIMEOUT", cls.timeout)),
            currency=conf.get("CURRENCY", cls.currency),
            name=conf.get("NAME", cls.name),
        )


class GatewayAPI:
    """
    Service for interacting with the gateway's REST API.
    """

    def __init__(self, config: GatewayConfig, session: Optional[requests.Session] = None):
        self.config = config
        self.session = session or requests.Session()

    def _make_request(
        self, method: str, endpoint: str, data: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """Make authenticated API request to the gateway."""
        if not self.config.key_id or not self.config.key_secret:
            raise GatewayError("Payment gateway is not configured", error_code="NOT_CONFIGURED")

        url = f"{self.config.base_url}{endpoint}"

        try:
            response = self.session.request(
                method=method,
                url=url,
                auth=(self.config.key_id, self.config.key_secret),
                json=data if data else None,
                timeout=self.config.timeout,
            )
            response.raise_for_status()
            return response.json() if response.content else {}

        except requests.Timeout as e:
            logger.error(f"Gateway API request timed out: {method} {url} - {e}")
            raise GatewayError("Payment gateway timed out", error_code="TIMEOUT")

        except requests.HTTPError as e:
            error_code, description = self._parse_error(e.response)
            logger.error(f"Gateway API request failed: {method} {url} - {error_code} {description}")
            raise GatewayError(
                description or "Payment gateway rejected the request",
                error_code=error_code,
                status_code=e.response.status_code if e.response is not None else None,
            )

        except requests.RequestException as e:
            logger.error(f"Gateway API request failed: {method} {url} - {e}")
            raise GatewayError("Payment gateway unreachable", error_code="CONNECTION_ERROR")

    @staticmethod
    def _parse_error(response):
        if response is None:
            return "GATEWAY_ERROR", ""
        try:
            error = response.json().get("error", {})
        except ValueError:
            return f"HTTP_{response.status_code}", ""
        return error.get("code") or f"HTTP_{response.status_code}", error.get("description", "")

    def create_order(self, amount_minor: int, currency: str, receipt: str, notes: Dict[str, Any] = None):
        """
        Open a payment intent. Returns the gateway order object
        (``id``, ``amount``, ``currency``, ``status`` ...).
        """
        payload = {
            "amount": amount_minor,
            "currency": currency,
            "receipt": receipt,
            "payment_capture": 1,
        }
        if notes:
            payload["notes"] = notes
        return self._make_request("POST", "/orders", payload)

    def fetch_order_payments(self, gateway_order_id: str):
        """All payment attempts made against a gateway order."""
        response = self._make_request("GET", f"/orders/{gateway_order_id}/payments")
        return response.get("items", [])

    def refund_payment(self, gateway_payment_id: str, amount_minor: int, notes: Dict[str, Any] = None):
        payload = {"amount": amount_minor, "speed": "normal"}
        if notes:
            payload["notes"] = notes
        return self._make_request("POST", f"/payments/{gateway_payment_id}/refund", payload)
