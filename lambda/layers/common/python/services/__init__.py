"""
Premium Services
================

Report computation, export and history built on the shared clients.
"""

from .report_engine import ReportEngine
from .export_service import ExportService, ExportResult, serialize_csv
from .download_history import DownloadHistory
from .leaderboard import Leaderboard

__all__ = [
    "ReportEngine",
    "ExportService",
    "ExportResult",
    "serialize_csv",
    "DownloadHistory",
    "Leaderboard",
]
