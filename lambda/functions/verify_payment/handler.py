"""
Verify Premium Payment Lambda Handler
=====================================

POST /premium/verify

Authenticates the Razorpay checkout callback and, once verified,
upgrades the user to premium in a single atomic transaction.

Expected payload from the web app:
{
    "razorpay_order_id": "order_...",
    "razorpay_payment_id": "pay_...",
    "razorpay_signature": "<hex hmac-sha256>"
}

Re-submitting a verified callback is safe: granting premium twice is
a no-op.
"""

from typing import Callable, Optional

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import PaymentCallback
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_user_id,
    is_preflight,
    parse_request_body,
    premium_error_response,
    success_response,
)
from utils.entitlement_store import EntitlementStore, GrantResult
from utils.errors import PremiumError, SignatureMismatch, StorageError, ValidationError
from utils.secrets import require_secret
from utils.signature import verify_callback

logger = Logger()
metrics = Metrics()
tracer = Tracer()


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """Verify a payment callback and grant premium."""
    if is_preflight(event):
        return cors_preflight_response()

    try:
        user_id = get_user_id(event)
        callback = PaymentCallback.from_body(parse_request_body(event))

        result = verify_payment(
            store=EntitlementStore(),
            user_id=user_id,
            callback=callback,
            secret=require_secret("RAZORPAY_KEY_SECRET"),
            deadline=context.get_remaining_time_in_millis,
        )

        metrics.add_metric(name="PaymentsVerified", unit=MetricUnit.Count, value=1)
        return success_response({
            "success": True,
            "message": "Payment Successful!",
            "status": result.value,
        })

    except SignatureMismatch as e:
        # Possible tampering: logged and counted apart from bad input
        logger.warning(f"Rejected payment callback: {e}")
        metrics.add_metric(name="SignatureMismatches", unit=MetricUnit.Count, value=1)
        return premium_error_response(e)

    except ValidationError as e:
        logger.info(f"Invalid payment callback: {e}")
        metrics.add_metric(name="InvalidCallbacks", unit=MetricUnit.Count, value=1)
        return premium_error_response(e)

    except StorageError as e:
        logger.error(f"Entitlement commit failed, transaction rolled back: {e}")
        metrics.add_metric(name="EntitlementCommitFailures", unit=MetricUnit.Count, value=1)
        return premium_error_response(e)

    except PremiumError as e:
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error verifying payment: {e}")
        return error_response(500, "Something went wrong!")


@tracer.capture_method
def verify_payment(
    store: EntitlementStore,
    user_id: str,
    callback: PaymentCallback,
    secret: str,
    deadline: Optional[Callable[[], int]] = None
) -> GrantResult:
    """
    Authenticate the callback, then commit the entitlement.

    Nothing is written unless the signature verifies.
    """
    verify_callback(callback, secret)
    logger.info(f"Payment {callback.payment_id} verified for order {callback.order_id}")

    return store.grant_premium(user_id, deadline=deadline)
