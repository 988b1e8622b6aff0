"""
Download Data Model
===================

Append-only record of a generated report export.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .expense import parse_datetime


@dataclass(frozen=True)
class Download:
    """
    One exported report artifact.

    Maps to the downloads database table. Created exactly once per
    successful export and never updated or deleted by this service.
    """

    id: str
    user_id: str
    url: str
    storage_path: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Download":
        """Create Download from database row dictionary."""
        return cls(
            id=str(data.get("id", "")),
            user_id=str(data.get("user_id", "")),
            url=data.get("url", ""),
            storage_path=data.get("storage_path"),
            created_at=parse_datetime(data.get("created_at")),
        )

    def to_history_entry(self) -> dict:
        """Projection returned by the download history endpoint."""
        return {
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "url": self.url,
        }
