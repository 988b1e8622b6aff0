"""
Export Report Lambda Handler
============================

POST /premium/report/download

Recomputes the requested report server-side (the client's copy of the
lines is not trusted), stores it as CSV and records the download.

Expected payload (type may also be given as a query parameter):
{
    "type": "monthly"  # or "yearly", defaults to monthly
}
"""

from aws_lambda_powertools import Logger, Metrics, Tracer
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext

from models import WindowKind
from services.export_service import ExportResult, ExportService
from services.report_engine import ReportEngine
from utils.api_gateway import (
    cors_preflight_response,
    error_response,
    get_query_param,
    get_user_id,
    is_preflight,
    parse_request_body,
    premium_error_response,
    success_response,
)
from utils.errors import ExportError, PremiumError, ValidationError
from utils.supabase_client import SupabaseClient

logger = Logger()
metrics = Metrics()
tracer = Tracer()


@logger.inject_lambda_context
@metrics.log_metrics
@tracer.capture_lambda_handler
def lambda_handler(event: dict, context: LambdaContext) -> dict:
    """Export the user's report as CSV."""
    if is_preflight(event):
        return cors_preflight_response()

    try:
        user_id = get_user_id(event)
        body = parse_request_body(event)
        kind = WindowKind.parse(body.get("type") or get_query_param(event, "type") or WindowKind.MONTHLY.value)

        result = export_report(SupabaseClient(), user_id, kind)

        if result.success:
            metrics.add_metric(name="ReportsExported", unit=MetricUnit.Count, value=1)
        else:
            metrics.add_metric(name="EmptyExports", unit=MetricUnit.Count, value=1)

        return success_response(result.to_dict())

    except ValidationError as e:
        logger.info(f"Invalid export request: {e}")
        return premium_error_response(e)

    except ExportError as e:
        logger.error(f"Report export failed: {e}")
        metrics.add_metric(name="ExportFailures", unit=MetricUnit.Count, value=1)
        return premium_error_response(e)

    except PremiumError as e:
        logger.error(f"Report export failed: {e}")
        return premium_error_response(e)

    except Exception as e:
        logger.exception(f"Unhandled error exporting report: {e}")
        return error_response(500, "Something went Wrong!")


@tracer.capture_method
def export_report(supabase: SupabaseClient, user_id: str, kind: WindowKind) -> ExportResult:
    """Compute the report, then export its lines."""
    report = ReportEngine(supabase).compute_report(user_id, kind)
    return ExportService(supabase).export_report(user_id, report.lines)
