"""
Expense Premium Service - Data Models
=====================================

Typed data models for payments, entitlements and reports.
"""

from .expense import Expense, ExpenseCategory
from .user import User
from .payment import Order, PaymentCallback
from .download import Download
from .report import Report, ReportLine, ReportWindow, WindowKind

__all__ = [
    "Expense",
    "ExpenseCategory",
    "User",
    "Order",
    "PaymentCallback",
    "Download",
    "Report",
    "ReportLine",
    "ReportWindow",
    "WindowKind",
]
