"""Client-side state types. Snapshots are immutable; sessions own the mutable cells."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class Phase(str, Enum):
    IDLE = "idle"
    AWAITING_METADATA = "awaiting_metadata"
    STREAMING = "streaming"
    COMPLETE = "complete"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (Phase.COMPLETE, Phase.FAILED)


@dataclass(frozen=True)
class ClientStreamState:
    topic: str = ""
    buffered_text: str = ""
    visible_text: str = ""
    artifact_reference: str | None = None
    phase: Phase = Phase.IDLE
    error: str | None = None


@dataclass(frozen=True)
class HistoryEntry:
    id: str
    topic: str
    explanation: str
    image_url: str
    created_at: str | None = None

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> HistoryEntry:
        """Build from the relay's ``{id, topic, explanation, imageUrl, createdAt}`` shape."""
        return cls(
            id=str(data["id"]),
            topic=data.get("topic", ""),
            explanation=data.get("explanation", ""),
            image_url=data.get("imageUrl", ""),
            created_at=data.get("createdAt"),
        )
