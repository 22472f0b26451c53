"""
Razorpay order creation and payment signature verification.

Orders go through the REST API with basic auth. The checkout widget
hands back (order_id, payment_id, signature); the signature is
HMAC-SHA256 over "order_id|payment_id" keyed with the account secret.
"""

import hashlib
import hmac
from decimal import Decimal
from typing import Optional

import httpx
from fastapi import HTTPException, status

from app.core.config import get_settings
from app.core.logging import get_logger

logger = get_logger(__name__)
settings = get_settings()


class PaymentGatewayError(HTTPException):
    def __init__(self, detail: str = "Payment gateway unavailable"):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


def to_minor_units(amount: Decimal) -> int:
    """Rupees to paise."""
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


class RazorpayGateway:
    def __init__(
        self,
        key_id: str,
        key_secret: str,
        api_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.key_id = key_id
        self._key_secret = key_secret
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def create_order(self, amount: Decimal, receipt: str, currency: str = "INR") -> dict:
        payload = {
            "amount": to_minor_units(amount),
            "currency": currency,
            "receipt": receipt,
        }
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(
                    f"{self._api_url}/orders",
                    json=payload,
                    auth=(self.key_id, self._key_secret),
                )
                response.raise_for_status()
                order = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("payment_order_failed", receipt=receipt, error=str(e))
            raise PaymentGatewayError()

        if "id" not in order:
            logger.error("payment_order_malformed", receipt=receipt)
            raise PaymentGatewayError()

        logger.info("payment_order_created", order_id=order["id"], receipt=receipt, amount=payload["amount"])
        return order

    def verify_signature(self, order_id: str, payment_id: str, signature: str) -> bool:
        expected = hmac.new(
            self._key_secret.encode(),
            f"{order_id}|{payment_id}".encode(),
            hashlib.sha256,
        ).hexdigest().encode()
        return hmac.compare_digest(expected, signature.encode())


def get_payment_gateway() -> RazorpayGateway:
    return RazorpayGateway(
        key_id=settings.RAZORPAY_KEY_ID,
        key_secret=settings.RAZORPAY_KEY_SECRET,
        api_url=settings.RAZORPAY_API_URL,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
