"""
Durable history of completed explanations.

The store is append-only and keyed by identity: one row per successful
generation, queried newest-first for the owning user only.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, List, Optional
from uuid import uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.models.models import HistoryRecord


class PersistenceError(Exception):
    """Raised when the history store cannot append or query."""


@dataclass(frozen=True)
class GenerationResult:
    """A completed answer, assembled by the relay after the stream ended naturally."""
    uid: str
    topic: str
    full_text: str
    artifact_reference: str
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class HistoryStore:
    """
    Persistence gateway backed by SQLAlchemy.

    Each call opens its own session from `session_factory`, so the store is safe
    to use from a streaming response that outlives the request's DB dependency.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    def append(self, result: GenerationResult) -> str:
        """Persist one result and return its record id."""
        record_id = str(uuid4())
        created_at = result.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc).replace(tzinfo=None)
        db = self.session_factory()
        try:
            db.add(
                HistoryRecord(
                    id=record_id,
                    uid=result.uid,
                    topic=result.topic,
                    explanation=result.full_text,
                    image_url=result.artifact_reference,
                    created_at=created_at,
                )
            )
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            raise PersistenceError(f"could not append history for uid={result.uid}: {e}") from e
        finally:
            db.close()
        return record_id

    def query_by_identity(self, uid: str, limit: int = 10) -> List[HistoryRecord]:
        """Records owned by `uid`, newest first, at most `limit`."""
        db = self.session_factory()
        try:
            return (
                db.query(HistoryRecord)
                .filter(HistoryRecord.uid == uid)
                .order_by(HistoryRecord.created_at.desc())
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            raise PersistenceError(f"could not query history for uid={uid}: {e}") from e
        finally:
            db.close()


# Global history store instance
_history_store: Optional[HistoryStore] = None


def get_history_store() -> HistoryStore:
    """Get or create the global history store instance."""
    global _history_store
    if _history_store is None:
        from api.config import SessionLocal
        _history_store = HistoryStore(SessionLocal)
    return _history_store
