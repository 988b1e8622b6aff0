"""
Payment Data Models
===================

Orders issued by the payment gateway and the callback posted back by
the client once the user has paid. Neither is persisted locally: the
callback is correlated to its order purely by order id.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True)
class Order:
    """A payment order created at the provider."""

    order_id: str
    amount: int  # minor units (paise for INR)
    currency: str
    receipt: Optional[str] = None
    status: str = "created"
    created_at: Optional[datetime] = None

    @classmethod
    def from_provider(cls, data: dict) -> "Order":
        """Create Order from a Razorpay order response body."""
        created = data.get("created_at")
        return cls(
            order_id=data["id"],
            amount=int(data["amount"]),
            currency=data["currency"],
            receipt=data.get("receipt"),
            status=data.get("status", "created"),
            created_at=datetime.fromtimestamp(created, tz=timezone.utc) if created else None,
        )

    def to_dict(self) -> dict:
        """Order body returned to the client to open the checkout."""
        return {
            "id": self.order_id,
            "amount": self.amount,
            "currency": self.currency,
            "receipt": self.receipt,
            "status": self.status,
            "created_at": int(self.created_at.timestamp()) if self.created_at else None,
        }


@dataclass(frozen=True)
class PaymentCallback:
    """Confirmation data submitted after an external payment."""

    order_id: Optional[str]
    payment_id: Optional[str]
    signature: Optional[str]

    @classmethod
    def from_body(cls, body: dict) -> "PaymentCallback":
        """Build from the checkout handler's field names."""
        return cls(
            order_id=body.get("razorpay_order_id"),
            payment_id=body.get("razorpay_payment_id"),
            signature=body.get("razorpay_signature"),
        )

    @property
    def missing_fields(self) -> list[str]:
        missing = []
        for name in ("order_id", "payment_id", "signature"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                missing.append(name)
        return missing
