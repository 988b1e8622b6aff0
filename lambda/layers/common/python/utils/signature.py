"""
Payment Signature Verification
==============================

Authenticates a Razorpay checkout callback. The provider signs
"<order_id>|<payment_id>" with HMAC-SHA256 under the account's key
secret and the client echoes the hex digest back to us.
"""

import hashlib
import hmac

from aws_lambda_powertools import Logger

from models.payment import PaymentCallback
from .errors import SignatureMismatch, ValidationError

logger = Logger()


def generate_signature(order_id: str, payment_id: str, secret: str) -> str:
    """Hex HMAC-SHA256 of "order_id|payment_id" under secret."""
    message = f"{order_id}|{payment_id}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def verify(order_id: str, payment_id: str, signature: str, secret: str) -> bool:
    """
    Check a callback signature in constant time.

    Returns False for anything that is not a matching signature,
    including non-ASCII input, instead of raising.
    """
    if not secret:
        raise ValueError("Signing secret is required")

    expected = generate_signature(order_id, payment_id, secret)
    try:
        provided = signature.encode("ascii")
    except (AttributeError, UnicodeEncodeError):
        return False

    return hmac.compare_digest(expected.encode("ascii"), provided)


def verify_callback(callback: PaymentCallback, secret: str) -> None:
    """
    Validate and authenticate a payment callback.

    Raises:
        ValidationError: If any callback field is missing
        SignatureMismatch: If the signature does not match
    """
    missing = callback.missing_fields
    if missing:
        raise ValidationError(f"Missing callback fields: {', '.join(missing)}", "All fields are Mandatory!")

    if not verify(callback.order_id, callback.payment_id, callback.signature, secret):
        logger.warning(
            "Payment signature mismatch",
            extra={"order_id": callback.order_id, "payment_id": callback.payment_id}
        )
        raise SignatureMismatch(f"Signature mismatch for order {callback.order_id}")
