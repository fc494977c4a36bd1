from api.config import Base
from sqlalchemy import Column, String, DateTime, Text, Index
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class HistoryRecord(Base):
    """One completed explanation. Append-only: rows are never updated or deleted."""
    __tablename__ = "history"
    id = Column(String, primary_key=True, index=True)  # uuid
    uid = Column(String, nullable=False)
    topic = Column(String, nullable=False)
    explanation = Column(Text, nullable=False)
    image_url = Column(String, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    __table_args__ = (Index("ix_history_uid_created_at", "uid", "created_at"),)
