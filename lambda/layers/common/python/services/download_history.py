"""
Download History
================

Read-only listing of a user's past report exports.
"""

import httpx
from aws_lambda_powertools import Logger

from models.download import Download
from utils.errors import StorageError
from utils.supabase_client import SupabaseClient

logger = Logger()


class DownloadHistory:
    """Lists export records, newest first."""

    def __init__(self, supabase: SupabaseClient):
        self.supabase = supabase

    def list_downloads(self, user_id: str) -> list[Download]:
        try:
            rows = self.supabase.get_downloads(user_id)
        except httpx.HTTPError as e:
            logger.error(f"Download history query failed: {e}")
            raise StorageError(f"Download history query failed: {e}")

        downloads = [Download.from_dict(row) for row in rows]
        # Rows without a timestamp sort last
        downloads.sort(
            key=lambda d: d.created_at.timestamp() if d.created_at else float("-inf"),
            reverse=True,
        )
        return downloads
