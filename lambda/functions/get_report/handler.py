"""
Get Report Lambda Handler
=========================

GET /premium/report?type=monthly|yearly

Returns the authenticated user's expenses for the last calendar month
or year, newest first, with the total derived from the returned lines.
"""

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import WindowKind
from services.report_engine import ReportEngine
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_query_param,
    get_user_id,
    is_preflight,
    premium_error_response,
    success_response,
)
from utils.errors import PremiumError, ValidationError
from utils.supabase_client import SupabaseClient

logger = Logger()
metrics = Metrics()
tracer = Tracer()


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """Compute the requested report."""
    if is_preflight(event):
        return cors_preflight_response()

    try:
        user_id = get_user_id(event)
        kind = WindowKind.parse(get_query_param(event, "type"))

        report = ReportEngine(SupabaseClient()).compute_report(user_id, kind)

        metrics.add_metric(name="ReportsGenerated", unit=MetricUnit.Count, value=1)
        return success_response(report.to_dict())

    except ValidationError as e:
        logger.info(f"Invalid report request: {e}")
        return premium_error_response(e)

    except PremiumError as e:
        logger.error(f"Report failed: {e}")
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error computing report: {e}")
        return error_response(500, "Something went wrong!")
