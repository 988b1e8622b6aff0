"""
API Gateway Helpers
===================

Request parsing and response building shared by the premium handlers.
"""

import json
import os
from typing import Any, Optional

from .errors import AuthenticationError, PremiumError, ValidationError

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": os.environ.get("CORS_ORIGIN", "*"),
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def http_method(event: dict) -> str:
    """HTTP method for REST (v1) and HTTP (v2) API events."""
    return event.get("httpMethod") or event.get("requestContext", {}).get("http", {}).get("method", "")


def is_preflight(event: dict) -> bool:
    return http_method(event) == "OPTIONS"


def parse_request_body(event: dict) -> dict:
    """Parse request body from API Gateway event."""
    body = event.get("body") or "{}"
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            raise ValidationError("Request body is not valid JSON")
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def get_query_param(event: dict, name: str) -> Optional[str]:
    params = event.get("queryStringParameters") or {}
    return params.get(name)


def get_user_id(event: dict) -> str:
    """
    Authenticated user id supplied by the API Gateway authorizer.

    Supports Lambda authorizer context (REST and HTTP APIs) and JWT claims.
    """
    authorizer = event.get("requestContext", {}).get("authorizer") or {}
    user_id = (
        authorizer.get("userId")
        or (authorizer.get("lambda") or {}).get("userId")
        or (authorizer.get("claims") or {}).get("sub")
        or ((authorizer.get("jwt") or {}).get("claims") or {}).get("sub")
    )
    if not user_id:
        raise AuthenticationError("No authenticated user on request")
    return str(user_id)


def cors_preflight_response() -> dict:
    """Handle CORS preflight OPTIONS request."""
    return {
        "statusCode": 200,
        "headers": CORS_HEADERS,
        "body": ""
    }


def success_response(data: Any, status_code: int = 200) -> dict:
    """Create success API Gateway response."""
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": json.dumps(data)
    }


def error_response(status_code: int, message: str) -> dict:
    """Create error API Gateway response."""
    return {
        "statusCode": status_code,
        "headers": CORS_HEADERS,
        "body": json.dumps({"error": message})
    }


def premium_error_response(error: PremiumError) -> dict:
    """Map a premium error to its status and public message only."""
    return error_response(error.status_code, error.public_message)
