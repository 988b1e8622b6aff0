"""
Expense Premium Service - Common Utilities
==========================================

Shared clients and helpers for all Lambda functions.
"""

from .errors import (
    PremiumError,
    ValidationError,
    AuthenticationError,
    PermissionDeniedError,
    SignatureMismatch,
    GatewayError,
    StorageError,
    ExportError,
)
from .secrets import get_secret, get_all_secrets, require_secret
from .supabase_client import SupabaseClient
from .razorpay_client import RazorpayClient, get_payment_gateway
from .entitlement_store import EntitlementStore, GrantResult, Transaction

__all__ = [
    "PremiumError",
    "ValidationError",
    "AuthenticationError",
    "PermissionDeniedError",
    "SignatureMismatch",
    "GatewayError",
    "StorageError",
    "ExportError",
    "get_secret",
    "get_all_secrets",
    "require_secret",
    "SupabaseClient",
    "RazorpayClient",
    "get_payment_gateway",
    "EntitlementStore",
    "GrantResult",
    "Transaction",
]
