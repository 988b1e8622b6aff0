"""
Supabase Client Utilities
=========================

HTTP-based Supabase client for database and storage operations.
Uses httpx for direct REST API calls to avoid heavy SDK dependencies.
"""

import os
from typing import Optional
from datetime import datetime
from urllib.parse import quote

import httpx
from aws_lambda_powertools import Logger

from .secrets import require_secret

logger = Logger()

# Request timeouts (seconds)
SUPABASE_TIMEOUT_SECONDS = float(os.environ.get("SUPABASE_TIMEOUT_SECONDS", "10"))
EXPORT_UPLOAD_TIMEOUT_SECONDS = float(os.environ.get("EXPORT_UPLOAD_TIMEOUT_SECONDS", "20"))

# Cached configuration
_config: Optional[dict] = None


def _get_config() -> dict:
    """Get cached Supabase configuration."""
    global _config
    if _config is None:
        _config = {
            "url": require_secret("SUPABASE_URL"),
            "key": require_secret("SUPABASE_KEY"),
        }
    return _config


def _get_headers(config: dict) -> dict:
    """Get headers for Supabase REST API."""
    return {
        "apikey": config["key"],
        "Authorization": f"Bearer {config['key']}",
        "Content-Type": "application/json",
        "Prefer": "return=representation",
    }


class SupabaseClient:
    """
    Supabase operations for premium reports.

    Handles:
    - Windowed expense queries
    - Download history rows
    - Report uploads to Supabase Storage
    """

    def __init__(self, config: Optional[dict] = None, transport: Optional[httpx.BaseTransport] = None):
        self._config = config or _get_config()
        self._client = httpx.Client(
            timeout=SUPABASE_TIMEOUT_SECONDS,
            headers=_get_headers(self._config),
            transport=transport,
        )

    def __del__(self):
        if hasattr(self, '_client'):
            self._client.close()

    def _rest_url(self, table: str) -> str:
        """Get REST API URL for a table."""
        return f"{self._config['url']}/rest/v1/{table}"

    def _storage_url(self, path: str) -> str:
        """Get Storage API URL."""
        return f"{self._config['url']}/storage/v1/{path}"

    def _query(self, table: str, params: dict = None) -> list[dict]:
        """Execute a SELECT query."""
        url = self._rest_url(table)
        response = self._client.get(url, params=params or {})
        response.raise_for_status()
        return response.json()

    def _insert(self, table: str, data: dict) -> dict:
        """Insert a record."""
        url = self._rest_url(table)
        response = self._client.post(url, json=data)
        response.raise_for_status()
        result = response.json()
        return result[0] if isinstance(result, list) and result else result

    # =========================================================================
    # EXPENSE OPERATIONS
    # =========================================================================

    def get_expenses_in_window(self, user_id: str, start: datetime, end: datetime) -> list[dict]:
        """Query a user's expenses created within [start, end], newest first.

        Uses PostgREST 'and' filter for both bounds on created_at.
        """
        date_filter = f"(created_at.gte.{start.isoformat()},created_at.lte.{end.isoformat()})"

        params = {
            "user_id": f"eq.{user_id}",
            "and": date_filter,
            "select": "created_at,description,category,amount",
            "order": "created_at.desc",
        }

        results = self._query("expenses", params)
        logger.info(f"Found {len(results)} expenses in window", extra={"user_id": user_id})
        return results

    # =========================================================================
    # DOWNLOAD OPERATIONS
    # =========================================================================

    def insert_download(self, user_id: str, url: str, storage_path: str) -> dict:
        """Append a download history row."""
        record = {
            "user_id": user_id,
            "url": url,
            "storage_path": storage_path,
        }
        return self._insert("downloads", record)

    def get_downloads(self, user_id: str) -> list[dict]:
        """Fetch a user's download history, newest first."""
        return self._query("downloads", {
            "user_id": f"eq.{user_id}",
            "select": "id,user_id,url,storage_path,created_at",
            "order": "created_at.desc",
        })

    # =========================================================================
    # STORAGE OPERATIONS
    # =========================================================================

    def upload_object(
        self,
        bucket: str,
        path: str,
        content: bytes,
        content_type: str = "text/csv",
        timeout: float = EXPORT_UPLOAD_TIMEOUT_SECONDS
    ) -> str:
        """Upload bytes to Supabase Storage and return the object's public URL.

        Never overwrites: an existing object at the same path is an error.
        """
        url = self._storage_url(f"object/{bucket}/{quote(path)}")
        response = self._client.post(
            url,
            content=content,
            headers={"Content-Type": content_type, "x-upsert": "false"},
            timeout=timeout,
        )
        response.raise_for_status()
        logger.info(f"Uploaded {len(content)} bytes to {bucket}/{path}")
        return self.public_object_url(bucket, path)

    def public_object_url(self, bucket: str, path: str) -> str:
        return self._storage_url(f"object/public/{bucket}/{quote(path)}")
