"""Read-aloud hook. The consumer ties a narrator to the active session so it stops with it."""

from __future__ import annotations

from typing import Protocol


class Narrator(Protocol):
    def speak(self, text: str) -> None: ...

    def cancel(self) -> None: ...
