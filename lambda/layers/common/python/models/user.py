"""
User Data Model
===============

Premium view of a user record in the DynamoDB users table.

The identity service owns the record. The premium core only flips
is_premium and reads total_expenses.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from .expense import parse_datetime


@dataclass
class User:
    """A user as seen by the entitlement store."""

    id: str
    name: str = ""
    is_premium: bool = False
    total_expenses: Decimal = Decimal("0")
    premium_since: Optional[datetime] = None

    # Optimistic-lock counter, bumped on every entitlement write
    version: int = 0

    @classmethod
    def from_item(cls, item: dict) -> "User":
        """Create User from a low-level DynamoDB item (typed attribute values)."""
        def _s(key: str, default: str = "") -> str:
            return item.get(key, {}).get("S", default)

        def _n(key: str, default: str = "0") -> str:
            return item.get(key, {}).get("N", default)

        return cls(
            id=_s("id"),
            name=_s("name"),
            is_premium=item.get("is_premium", {}).get("BOOL", False),
            total_expenses=Decimal(_n("total_expenses")),
            premium_since=parse_datetime(_s("premium_since") or None),
            version=int(_n("version")),
        )

    def to_leaderboard_entry(self) -> dict:
        return {
            "name": self.name,
            "totalExpenses": float(self.total_expenses),
        }
