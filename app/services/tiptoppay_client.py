"""
Outbound client for the TipTopPay gateway.

Every call builds a flat parameter map, drops empty values, signs it with
HMAC-SHA256 over ``key=value`` pairs joined by ``&`` in sorted key order and
POSTs it as JSON. Results are normalized to::

    {"success": True, "data": {...}}
    {"success": False, "error": "...", "details": {...} | None}

Nothing raises past this module; callers decide on retries.
"""
import hashlib
import hmac
import logging
from typing import Any, Dict, Optional

import requests

from app.config import Settings

logger = logging.getLogger(__name__)


def to_minor_units(amount) -> int:
    return int(round(float(amount) * 100))


def _drop_empty(data: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in data.items() if v is not None and v != ""}


class TipTopPayClient:
    def __init__(self, settings: Settings, http=None):
        self.public_id = settings.tiptoppay_public_id
        self.api_key = settings.tiptoppay_api_key
        self.api_url = settings.tiptoppay_api_url.rstrip("/")
        self.timeout = settings.tiptoppay_timeout
        self.http = http or requests

        if not self.public_id or not self.api_key:
            logger.warning("TipTopPay credentials not configured. Payment calls will fail.")

    def generate_signature(self, data: Dict[str, Any]) -> str:
        string_to_sign = "&".join(f"{key}={data[key]}" for key in sorted(data))
        return hmac.new(
            self.api_key.encode("utf-8"),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def verify_notification_signature(self, data: Dict[str, Any], signature: Optional[str]) -> bool:
        if not signature:
            return False
        try:
            calculated = self.generate_signature(data)
        except Exception:
            logger.exception("Error verifying notification signature")
            return False
        return hmac.compare_digest(calculated, signature)

    def _post(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        request_data = _drop_empty(params)
        request_data["signature"] = self.generate_signature(request_data)

        try:
            response = self.http.post(
                f"{self.api_url}{path}",
                json=request_data,
                headers={"Content-Type": "application/json"},
                timeout=self.timeout,
            )
        except requests.Timeout:
            logger.error(f"TipTopPay {path} timed out after {self.timeout}s")
            return {"success": False, "error": "Gateway timeout", "details": None}
        except requests.RequestException as e:
            logger.error(f"TipTopPay {path} request failed: {e}")
            return {"success": False, "error": str(e), "details": None}

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            message = body.get("message") if isinstance(body, dict) else None
            logger.error(f"TipTopPay {path} failed ({response.status_code}): {body or response.text}")
            return {
                "success": False,
                "error": message or f"HTTP {response.status_code}",
                "details": body,
            }

        return {"success": True, "data": body}

    def create_payment_by_cryptogram(
        self,
        *,
        cryptogram: str,
        amount,
        order_id,
        currency: str = "KZT",
        description: Optional[str] = None,
        customer: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        customer = customer or {}
        return self._post("/payments/cryptogram", {
            "publicId": self.public_id,
            "cryptogram": cryptogram,
            "amount": to_minor_units(amount),
            "currency": currency.upper(),
            "orderId": str(order_id),
            "description": description or f"Оплата заказа #{order_id}",
            "customerEmail": customer.get("email"),
            "customerPhone": customer.get("phone"),
            "customerName": customer.get("name"),
        })

    def check_payment_status(self, transaction_id) -> Dict[str, Any]:
        return self._post("/payments/status", {
            "publicId": self.public_id,
            "transactionId": transaction_id,
        })

    def confirm_payment(self, transaction_id, amount) -> Dict[str, Any]:
        """Capture funds of a two-stage payment."""
        return self._post("/payments/confirm", {
            "publicId": self.public_id,
            "transactionId": transaction_id,
            "amount": to_minor_units(amount),
        })

    def cancel_payment(self, transaction_id) -> Dict[str, Any]:
        return self._post("/payments/cancel", {
            "publicId": self.public_id,
            "transactionId": transaction_id,
        })

    def refund_payment(self, transaction_id, amount) -> Dict[str, Any]:
        return self._post("/payments/refund", {
            "publicId": self.public_id,
            "transactionId": transaction_id,
            "amount": to_minor_units(amount),
        })
