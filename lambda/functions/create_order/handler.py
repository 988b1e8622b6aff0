"""
Create Premium Order Lambda Handler
===================================

POST /premium/order

Creates a Razorpay order for the premium upgrade. The client opens
the checkout with the returned order and later posts the signed
callback to /premium/verify.
"""

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import Order
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_user_id,
    is_preflight,
    premium_error_response,
    success_response,
)
from utils.errors import GatewayError, PremiumError
from utils.razorpay_client import (
    PREMIUM_ORDER_AMOUNT,
    PREMIUM_ORDER_CURRENCY,
    RazorpayClient,
    get_payment_gateway,
)

logger = Logger()
metrics = Metrics()
tracer = Tracer()


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """Create a premium order for the authenticated user."""
    if is_preflight(event):
        return cors_preflight_response()

    try:
        user_id = get_user_id(event)
        order = create_order(get_payment_gateway(), user_id)

        metrics.add_metric(name="OrdersCreated", unit=MetricUnit.Count, value=1)
        return success_response(order.to_dict(), status_code=201)

    except GatewayError as e:
        logger.error(f"Order creation failed: {e}", extra={"provider_status": e.provider_status})
        metrics.add_metric(name="GatewayErrors", unit=MetricUnit.Count, value=1)
        return premium_error_response(e)

    except PremiumError as e:
        logger.warning(f"Order request rejected: {e}")
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error creating order: {e}")
        return error_response(500, "Internal Server Error!")


@tracer.capture_method
def create_order(gateway: RazorpayClient, user_id: str) -> Order:
    """Issue one order at the configured premium price. Never retried."""
    logger.info(f"Creating premium order for user {user_id}")
    return gateway.create_order(
        PREMIUM_ORDER_AMOUNT,
        PREMIUM_ORDER_CURRENCY,
        receipt=f"premium-{user_id}",
    )
