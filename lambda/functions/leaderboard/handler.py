"""
Leaderboard Lambda Handler
==========================

GET /premium/leaderboard

Premium members can see every user's running expense total, highest
spender first.
"""

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from services.leaderboard import Leaderboard
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_query_param,
    get_user_id,
    is_preflight,
    premium_error_response,
    success_response,
)
from utils.entitlement_store import EntitlementStore
from utils.errors import PermissionDeniedError, PremiumError, ValidationError

logger = Logger()
metrics = Metrics()
tracer = Tracer()


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    if is_preflight(event):
        return cors_preflight_response()

    try:
        user_id = get_user_id(event)
        limit = _parse_limit(get_query_param(event, "limit"))

        leaderboard = Leaderboard(EntitlementStore())
        leaderboard.ensure_premium(user_id)

        return success_response(leaderboard.top_spenders(limit=limit))

    except PermissionDeniedError as e:
        logger.info(f"Leaderboard denied: {e}")
        return premium_error_response(e)

    except PremiumError as e:
        logger.error(f"Leaderboard failed: {e}")
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error building leaderboard: {e}")
        return error_response(500, "Something went wrong!")


def _parse_limit(value):
    if value is None:
        return None
    try:
        limit = int(value)
    except ValueError:
        raise ValidationError(f"Invalid limit: {value!r}")
    if limit <= 0:
        raise ValidationError(f"Invalid limit: {value!r}")
    return limit
