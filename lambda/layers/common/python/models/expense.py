"""
Expense Data Model
==================

Represents a user expense as stored in the Supabase expenses table.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Any

from dateutil.parser import isoparse


class ExpenseCategory(str, Enum):
    """Fixed expense category labels."""
    MOBILE_COMPUTERS = "Mobile & Computers"
    BOOKS_EDUCATION = "Books & Education"
    SPORTS_OUTDOOR_TRAVEL = "Sports, Outdoor & Travel"
    BILLS_EMIS = "Bills & EMI's"
    GROCERIES_PET_SUPPLIES = "Groceries & Pet Supplies"
    FASHION_BEAUTY = "Fashion & Beauty"
    GIFTS_DONATIONS = "Gifts & Donations"
    INVESTMENTS = "Investments"
    INSURANCE = "Insurance"
    ENTERTAINMENT = "Entertainment"
    HOME_UTILITIES = "Home & Utilities"
    HOBBIES_LEISURE = "Hobbies & Leisure"


@dataclass(frozen=True)
class Expense:
    """
    Represents a single expense owned by a user.

    Expenses are immutable once created; deletion happens outside
    the premium core.
    """

    id: str
    user_id: str
    amount: Decimal
    category: ExpenseCategory
    description: str
    created_at: datetime

    def __post_init__(self):
        if self.amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {self.amount}")

    @classmethod
    def from_dict(cls, data: dict) -> "Expense":
        """Create Expense from database row dictionary."""
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("user_id", "")),
            amount=parse_amount(data.get("amount")),
            category=ExpenseCategory(data.get("category")),
            description=data.get("description") or "",
            created_at=parse_datetime(data.get("created_at")),
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for database operations."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "amount": str(self.amount),
            "category": self.category.value,
            "description": self.description,
            "created_at": self.created_at.isoformat(),
        }


def parse_amount(value: Any) -> Decimal:
    """Parse a monetary amount without going through float."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        raise ValueError("Amount is required")
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")


def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse datetime from various formats. Naive values are taken as UTC."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            # Any ISO 8601 precision PostgREST emits, including trimmed fractions
            parsed = isoparse(value)
        except (ValueError, OverflowError):
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
