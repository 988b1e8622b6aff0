"""
Report Export Service
=====================

Materializes a report as CSV in Supabase Storage and records the
download in the user's history.

Steps:
1. Nothing to export -> empty result, no upload, no history row
2. Serialize lines to CSV (pure)
3. Upload the CSV (its own timeout)
4. Insert the downloads row (durability boundary)

A blob orphaned by a failed step 4 is left in place; it is never
referenced and carries no state.
"""

import csv
import io
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional, Sequence

import httpx
from aws_lambda_powertools import Logger

from models.download import Download
from models.report import ReportLine
from utils.errors import ExportError
from utils.supabase_client import SupabaseClient

logger = Logger()

REPORTS_BUCKET = os.environ.get("REPORTS_BUCKET", "expense-reports")

# Fixed column order of exported reports
CSV_COLUMNS = ["createdAt", "category", "description", "amount"]


@dataclass(frozen=True)
class ExportResult:
    """Outcome of an export request."""

    success: bool
    url: str = ""
    download: Optional[Download] = None

    @classmethod
    def empty(cls) -> "ExportResult":
        """Designated result when there is nothing to export."""
        return cls(success=False)

    def to_dict(self) -> dict:
        return {"success": self.success, "url": self.url}


def serialize_csv(lines: Sequence[ReportLine]) -> bytes:
    """Render report lines as CSV bytes with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for line in lines:
        writer.writerow([
            line.created_at.isoformat(),
            line.category.value,
            line.description,
            str(line.amount),
        ])
    return buffer.getvalue().encode("utf-8")


def build_storage_path(user_id: str, now: datetime) -> str:
    """Storage key for an export, scoped to the user and timestamp."""
    return f"Expensify-{user_id}/{now.strftime('%Y%m%dT%H%M%S%fZ')}.csv"


class ExportService:
    """Exports reports and records download history."""

    def __init__(self, supabase: SupabaseClient, bucket: Optional[str] = None):
        self.supabase = supabase
        self.bucket = bucket or REPORTS_BUCKET

    def export_report(
        self,
        user_id: str,
        lines: Sequence[ReportLine],
        now: Optional[datetime] = None
    ) -> ExportResult:
        """
        Export report lines for a user.

        Returns:
            ExportResult with the stored file's URL, or ExportResult.empty()

        Raises:
            ExportError: If serialization, upload or recording fails
        """
        if not lines:
            logger.info("Nothing to export", extra={"user_id": user_id})
            return ExportResult.empty()

        try:
            content = serialize_csv(lines)
        except (AttributeError, TypeError, ValueError) as e:
            raise ExportError(f"CSV serialization failed: {e}")

        now = now or datetime.now(timezone.utc)
        storage_path = build_storage_path(user_id, now)

        try:
            url = self.supabase.upload_object(self.bucket, storage_path, content, content_type="text/csv")
        except httpx.HTTPError as e:
            logger.error(f"Report upload failed: {e}")
            raise ExportError(f"Report upload failed: {e}")

        try:
            row = self.supabase.insert_download(user_id, url, storage_path)
        except httpx.HTTPError as e:
            logger.error(f"Recording download failed, leaving {storage_path} unreferenced: {e}")
            raise ExportError(f"Recording download failed: {e}")

        download = Download.from_dict({
            "user_id": user_id,
            "url": url,
            "storage_path": storage_path,
            **(row or {}),
        })
        logger.info(f"Exported {len(lines)} report lines to {storage_path}")
        return ExportResult(success=True, url=download.url, download=download)
