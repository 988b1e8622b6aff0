"""
Premium Service Errors
======================

Exception taxonomy shared by the premium services and the Lambda handlers.

Every error carries the HTTP status it maps to and a stable public message.
Internal detail (provider bodies, DynamoDB error codes) stays on the
exception for logging and is never returned to the caller.
"""

from typing import Optional


class PremiumError(Exception):
    """Base class for errors raised by the premium core."""

    status_code = 500
    public_message = "Something went wrong!"
    retryable = False

    def __init__(self, message: Optional[str] = None, public_message: Optional[str] = None):
        super().__init__(message or self.public_message)
        if public_message is not None:
            self.public_message = public_message


class ValidationError(PremiumError):
    """Missing or malformed input."""

    status_code = 400
    public_message = "Invalid request!"

    def __init__(self, message: Optional[str] = None, public_message: Optional[str] = None):
        # Validation messages describe the caller's own input, so they are safe to return
        super().__init__(message, public_message or message)


class AuthenticationError(PremiumError):
    """No authenticated user id on the request."""

    status_code = 401
    public_message = "Not authorized!"


class PermissionDeniedError(PremiumError):
    """Authenticated user lacks the premium entitlement."""

    status_code = 403
    public_message = "Premium membership required!"


class SignatureMismatch(PremiumError):
    """Payment callback signature did not match; possible tampering."""

    status_code = 400
    public_message = "Payment Failed!"


class GatewayError(PremiumError):
    """Payment provider failed or timed out. Never retried automatically."""

    status_code = 500
    public_message = "Internal Server Error!"

    def __init__(self, message: str, status_code: int = 0, response_body: str = ""):
        super().__init__(message)
        self.provider_status = status_code
        self.response_body = response_body


class StorageError(PremiumError):
    """Transactional store or blob store failure. Safe for the caller to retry."""

    status_code = 500
    public_message = "Something went wrong!"
    retryable = True


class ExportError(StorageError):
    """Report export could not be materialized or recorded."""
