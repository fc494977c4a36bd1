"""
Common utility functions used across multiple routes.
"""

from datetime import datetime

from api.models.models import HistoryRecord
from api.schemas.history_schemas import HistoryEntryResponse


def iso_format(dt: datetime) -> str:
    """Format a naive UTC datetime as ISO string with Z suffix."""
    return dt.isoformat() + "Z"


def to_history_entry(record: HistoryRecord) -> HistoryEntryResponse:
    return HistoryEntryResponse(
        id=record.id,
        topic=record.topic,
        explanation=record.explanation,
        image_url=record.image_url,
        created_at=iso_format(record.created_at),
    )
