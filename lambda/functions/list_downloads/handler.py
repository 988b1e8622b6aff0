"""
Download History Lambda Handler
===============================

GET /premium/report/downloads

Lists the authenticated user's past report exports, newest first.
"""

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.utilities.typing import LambdaContext

from services.download_history import DownloadHistory
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_user_id,
    is_preflight,
    premium_error_response,
    success_response,
)
from utils.errors import PremiumError
from utils.supabase_client import SupabaseClient

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
        downloads = DownloadHistory(SupabaseClient()).list_downloads(user_id)
        return success_response([d.to_history_entry() for d in downloads])

    except PremiumError as e:
        logger.error(f"Download history failed: {e}")
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error listing downloads: {e}")
        return error_response(500, "Something went wrong!")
