"""
AWS Secrets Manager Utilities
=============================

Cached secret retrieval to minimize API calls and latency.
Secrets are cached in Lambda memory between invocations, so the payment
secret and the Supabase credentials are fetched once per container.
"""

import json
import os
from typing import Any
from functools import lru_cache

import boto3
from botocore.exceptions import ClientError
from aws_lambda_powertools import Logger

from .errors import PremiumError

logger = Logger()

# Secret bundle in AWS Secrets Manager
SECRET_NAME = os.environ.get("SECRETS_NAME", "premium-service-secrets")

# Cached secrets client
_secrets_client = None


def _get_secrets_client():
    """Get or create cached Secrets Manager client."""
    global _secrets_client
    if _secrets_client is None:
        _secrets_client = boto3.client("secretsmanager")
    return _secrets_client


@lru_cache(maxsize=1)
def get_all_secrets() -> dict[str, Any]:
    """
    Retrieve all secrets from AWS Secrets Manager.

    Cached using lru_cache to avoid repeated API calls within
    the same Lambda execution context.

    Returns:
        Dictionary containing all secrets

    Raises:
        ClientError: If secret retrieval fails
    """
    client = _get_secrets_client()

    try:
        response = client.get_secret_value(SecretId=SECRET_NAME)
        secrets = json.loads(response["SecretString"])
        logger.info("Successfully retrieved secrets from Secrets Manager")
        return secrets
    except ClientError as e:
        error_code = e.response.get("Error", {}).get("Code", "Unknown")
        logger.error(f"Failed to retrieve secrets: {error_code}")
        raise


def get_secret(key: str, default: Any = None) -> Any:
    """
    Get a specific secret value by key.

    Args:
        key: Secret key name
        default: Default value if key not found

    Returns:
        Secret value or default
    """
    secrets = get_all_secrets()
    return secrets.get(key, default)


def require_secret(key: str) -> str:
    """
    Get a secret that must be configured.

    Raises:
        PremiumError: If the key is missing or empty; surfaces as a 500
            without naming the key to the caller
    """
    value = get_secret(key)
    if not value:
        logger.error(f"Required secret {key} is not configured")
        raise PremiumError(f"Required secret {key} is not configured")
    return value
