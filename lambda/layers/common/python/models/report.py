"""
Report Data Model
=================

Time-windowed expense report: the window it covers, its lines, and
the derived total.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from dateutil.relativedelta import relativedelta

from utils.errors import ValidationError

from .expense import ExpenseCategory, parse_amount, parse_datetime


class WindowKind(str, Enum):
    """Supported report windows."""
    MONTHLY = "monthly"
    YEARLY = "yearly"

    @classmethod
    def parse(cls, value: Any) -> "WindowKind":
        """Parse a report type from a request, rejecting anything unknown."""
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"Invalid report type: {value!r}", "Invalid Type Specified!")


# Calendar-relative lengths; relativedelta clamps to the last valid day
# of the target month (Mar 31 - 1 month == Feb 28/29).
WINDOW_LENGTHS = {
    WindowKind.MONTHLY: relativedelta(months=1),
    WindowKind.YEARLY: relativedelta(years=1),
}


@dataclass(frozen=True)
class ReportWindow:
    """Closed time range [start, end] a report is computed over."""

    kind: WindowKind
    start: datetime
    end: datetime

    @classmethod
    def for_kind(cls, kind: WindowKind, now: Optional[datetime] = None) -> "ReportWindow":
        end = now or datetime.now(timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        return cls(kind=kind, start=end - WINDOW_LENGTHS[kind], end=end)

    def contains(self, moment: datetime) -> bool:
        return self.start <= moment <= self.end


@dataclass(frozen=True)
class ReportLine:
    """Projection of one expense onto the report columns."""

    created_at: datetime
    description: str
    category: ExpenseCategory
    amount: Decimal

    def __post_init__(self):
        if self.created_at is None:
            raise ValueError("Expense created_at is missing or unparseable")
        if not self.amount.is_finite() or self.amount <= 0:
            raise ValueError(f"Expense amount must be positive, got {self.amount}")

    @classmethod
    def from_dict(cls, data: dict) -> "ReportLine":
        """Create ReportLine from a projected expenses row."""
        return cls(
            created_at=parse_datetime(data.get("created_at")),
            description=data.get("description") or "",
            category=ExpenseCategory(data.get("category")),
            amount=parse_amount(data.get("amount")),
        )

    def to_dict(self) -> dict:
        return {
            "createdAt": self.created_at.isoformat(),
            "description": self.description,
            "category": self.category.value,
            "amount": str(self.amount),
        }


@dataclass
class Report:
    """
    A computed report.

    Lines are ordered newest first. The total is always derived from
    the lines, never read from the user's running total.
    """

    window: ReportWindow
    lines: list[ReportLine] = field(default_factory=list)

    @property
    def total_amount(self) -> Decimal:
        return sum((line.amount for line in self.lines), Decimal("0"))

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def to_dict(self) -> dict:
        """Convert to the JSON body of the report endpoint."""
        return {
            "type": self.window.kind.value,
            "start": self.window.start.isoformat(),
            "end": self.window.end.isoformat(),
            "totalAmount": str(self.total_amount),
            "lines": [line.to_dict() for line in self.lines],
        }
