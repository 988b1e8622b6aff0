"""
Razorpay API Client
===================

Creates payment orders at Razorpay for the premium upgrade.

Order creation is never retried: a blind retry after a timeout can
leave two live orders for one purchase, so every failure is surfaced
to the caller as a GatewayError.
"""

import os
import re
from typing import Optional

import httpx
from aws_lambda_powertools import Logger

from models.payment import Order
from .errors import GatewayError, ValidationError
from .secrets import require_secret

logger = Logger()

# Razorpay API configuration
RAZORPAY_BASE_URL = os.environ.get("RAZORPAY_BASE_URL", "https://api.razorpay.com/v1")
GATEWAY_TIMEOUT_SECONDS = float(os.environ.get("GATEWAY_TIMEOUT_SECONDS", "10"))

# Premium upgrade price (minor units)
PREMIUM_ORDER_AMOUNT = int(os.environ.get("PREMIUM_ORDER_AMOUNT", "5000"))
PREMIUM_ORDER_CURRENCY = os.environ.get("PREMIUM_ORDER_CURRENCY", "INR")

CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")


class RazorpayClient:
    """
    Razorpay Orders API client.

    Holds one configured httpx client for the life of the container.
    """

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = RAZORPAY_BASE_URL,
        timeout: float = GATEWAY_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None
    ):
        if not key_id or not key_secret:
            raise ValueError("Razorpay key id and secret are required")
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            auth=(key_id, key_secret),
            timeout=timeout,
            headers={"Content-Type": "application/json"},
            transport=transport,
        )

    def create_order(
        self,
        amount_minor_units: int,
        currency_code: str,
        receipt: Optional[str] = None
    ) -> Order:
        """
        Create an order at Razorpay.

        Args:
            amount_minor_units: Order amount in the currency's minor unit
            currency_code: ISO 4217 currency code (e.g. "INR")
            receipt: Optional merchant reference for the order

        Returns:
            The created Order

        Raises:
            ValidationError: If amount or currency are malformed
            GatewayError: On any provider failure or timeout
        """
        if isinstance(amount_minor_units, bool) or not isinstance(amount_minor_units, int) or amount_minor_units <= 0:
            raise ValidationError(f"Invalid order amount: {amount_minor_units!r}")
        if not isinstance(currency_code, str) or not CURRENCY_PATTERN.match(currency_code):
            raise ValidationError(f"Invalid currency code: {currency_code!r}")

        payload = {"amount": amount_minor_units, "currency": currency_code}
        if receipt:
            payload["receipt"] = receipt[:40]  # Razorpay receipt limit

        try:
            response = self._client.post(f"{self._base_url}/orders", json=payload)
        except httpx.TimeoutException as e:
            logger.error(f"Razorpay order creation timed out: {e}")
            raise GatewayError("Razorpay order creation timed out")
        except httpx.HTTPError as e:
            logger.error(f"Razorpay transport error: {e}")
            raise GatewayError(f"Razorpay transport error: {e}")

        if response.status_code not in (200, 201):
            logger.error(f"Razorpay API error: {response.status_code}")
            raise GatewayError(
                f"Razorpay API returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text
            )

        try:
            order = Order.from_provider(response.json())
        except (ValueError, KeyError, TypeError) as e:
            raise GatewayError(f"Unexpected Razorpay order body: {e}", response_body=response.text)

        logger.info(f"Created Razorpay order {order.order_id}", extra={"amount": order.amount, "currency": order.currency})
        return order


# Process-wide instance, built on first use
_payment_gateway: Optional[RazorpayClient] = None


def get_payment_gateway() -> RazorpayClient:
    """
    Get the shared Razorpay client.

    Built lazily from Secrets Manager and reused across invocations.
    """
    global _payment_gateway

    if _payment_gateway is None:
        _payment_gateway = RazorpayClient(
            key_id=require_secret("RAZORPAY_KEY_ID"),
            key_secret=require_secret("RAZORPAY_KEY_SECRET"),
        )

    return _payment_gateway
