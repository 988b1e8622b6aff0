"""
Report Engine
=============

Computes a user's expense report over a monthly or yearly window.
"""

from datetime import datetime
from typing import Any, Optional

import httpx
from aws_lambda_powertools import Logger

from models.report import Report, ReportLine, ReportWindow, WindowKind
from utils.errors import StorageError
from utils.supabase_client import SupabaseClient

logger = Logger()


class ReportEngine:
    """Builds reports from the expenses table."""

    def __init__(self, supabase: SupabaseClient):
        self.supabase = supabase

    def compute_report(self, user_id: str, window_kind: Any, now: Optional[datetime] = None) -> Report:
        """
        Compute the report for a window ending now.

        Args:
            user_id: Owner of the expenses
            window_kind: "monthly" or "yearly" (or a WindowKind)
            now: End of the window, defaults to the current UTC time

        Returns:
            Report with lines ordered newest first

        Raises:
            ValidationError: If window_kind is not a supported window
            StorageError: If the expense query fails or returns a malformed row
        """
        kind = WindowKind.parse(window_kind)
        window = ReportWindow.for_kind(kind, now=now)

        logger.info(
            f"Computing {kind.value} report",
            extra={"user_id": user_id, "start": window.start.isoformat(), "end": window.end.isoformat()}
        )

        try:
            rows = self.supabase.get_expenses_in_window(user_id, window.start, window.end)
        except httpx.HTTPError as e:
            logger.error(f"Expense query failed: {e}")
            raise StorageError(f"Expense query failed: {e}")

        lines = []
        for row in rows:
            try:
                line = ReportLine.from_dict(row)
            except (ValueError, TypeError) as e:
                # A partial report would understate the total
                logger.error(f"Malformed expense row: {e}")
                raise StorageError(f"Malformed expense row: {e}")
            if window.contains(line.created_at):
                lines.append(line)

        lines.sort(key=lambda line: line.created_at, reverse=True)
        return Report(window=window, lines=lines)
