"""
One stream session per submission.

A session owns two text cells and the tasks that write them:
  - buffered: appended to by the read loop as bytes arrive
  - visible:  copied from buffered by the RenderScheduler tick, or by the forced
              flush at stream end / stream error, and by nothing else

Sessions are never reused. Starting a new submission or selecting history
replaces the consumer's session; the old one is cancelled, after which none of
its cells change and it notifies nobody.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

import httpx

from client.config import DEFAULT_RENDER_INTERVAL
from client.exceptions import MissingMetadataError, RelayResponseError, StreamConsumerError, TransportError
from client.narrator import Narrator
from client.scheduler import RenderScheduler
from client.state import ClientStreamState, HistoryEntry, Phase
from client.transport import IMAGE_URL_HEADER, RelayClient, error_message

logger = logging.getLogger(__name__)

StateListener = Callable[["StreamSession", ClientStreamState], None]


class StreamSession:
    def __init__(
        self,
        topic: str = "",
        relay: RelayClient | None = None,
        *,
        render_interval: float = DEFAULT_RENDER_INTERVAL,
        on_change: StateListener | None = None,
        on_complete: Callable[[HistoryEntry], None] | None = None,
    ) -> None:
        self.topic = topic
        self.relay = relay
        self.on_change = on_change
        self.on_complete = on_complete
        self._buffered = ""
        self._visible = ""
        self._artifact_reference: str | None = None
        self._phase = Phase.AWAITING_METADATA if relay is not None else Phase.IDLE
        self._error: str | None = None
        self._cancelled = asyncio.Event()
        self._task: asyncio.Task[ClientStreamState] | None = None
        self._narrator: Narrator | None = None
        self.scheduler = RenderScheduler(self.render, render_interval)

    @classmethod
    def from_history(cls, entry: HistoryEntry, **kwargs) -> StreamSession:
        session = cls(entry.topic, **kwargs)
        session._buffered = session._visible = entry.explanation
        session._artifact_reference = entry.image_url
        session._phase = Phase.COMPLETE
        return session

    # ---- observation ----

    @property
    def state(self) -> ClientStreamState:
        return ClientStreamState(
            topic=self.topic,
            buffered_text=self._buffered,
            visible_text=self._visible,
            artifact_reference=self._artifact_reference,
            phase=self._phase,
            error=self._error,
        )

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def _notify(self) -> None:
        if self.cancelled or self.on_change is None:
            return
        try:
            self.on_change(self, self.state)
        except Exception:
            logger.exception("state listener failed topic=%r", self.topic)

    def _set_phase(self, phase: Phase, error: str | None = None) -> None:
        if self.cancelled:
            return
        self._phase = phase
        self._error = error
        self._notify()

    # ---- the two state cells ----

    def _append(self, text: str) -> None:
        if text and not self.cancelled:
            self._buffered += text

    def render(self) -> bool:
        """Promote buffered text to visible. Returns False when there was nothing new."""
        if self.cancelled or len(self._buffered) <= len(self._visible):
            return False
        self._visible = self._buffered
        self._notify()
        return True

    # ---- lifecycle ----

    def start(self) -> asyncio.Task[ClientStreamState]:
        if self.relay is None:
            raise RuntimeError("session has no relay to read from")
        if self._task is None:
            self._task = asyncio.get_running_loop().create_task(self.run(), name=f"stream:{self.topic}")
        return self._task

    async def wait(self) -> ClientStreamState:
        if self._task is not None:
            await asyncio.wait({self._task})
        return self.state

    def cancel(self) -> None:
        """Cooperative stop: the read loop quits at its next chunk, the scheduler stops now."""
        self._cancelled.set()
        self.scheduler.cancel()
        if self._narrator is not None:
            self._narrator.cancel()
            self._narrator = None

    async def aclose(self) -> None:
        """Cancel and release the read handle immediately rather than at the next chunk."""
        self.cancel()
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    def speak(self, narrator: Narrator) -> bool:
        if self.cancelled or not self._visible:
            return False
        if self._narrator is not None:
            self._narrator.cancel()
        narrator.cancel()
        narrator.speak(self._visible)
        self._narrator = narrator
        return True

    def stop_speaking(self) -> None:
        if self._narrator is not None:
            self._narrator.cancel()
            self._narrator = None

    async def run(self) -> ClientStreamState:
        try:
            await self._read()
        except StreamConsumerError as e:
            self._fail(e)
        except httpx.HTTPError as e:
            self._fail(TransportError(str(e) or e.__class__.__name__))
        except asyncio.CancelledError:
            logger.info("stream cancelled topic=%r", self.topic)
            raise
        except Exception as e:
            logger.exception("stream failed unexpectedly topic=%r", self.topic)
            self._fail(e)
        else:
            if not self.cancelled:
                self._complete()
        finally:
            self.scheduler.cancel()
        return self.state

    async def _read(self) -> None:
        if self.relay is None:
            raise RuntimeError("session has no relay to read from")
        async with self.relay.open_generate(self.topic) as response:
            if not response.is_success:
                await response.aread()
                raise RelayResponseError(response.status_code, error_message(response))

            image_url = response.headers.get(IMAGE_URL_HEADER)
            if not image_url:
                raise MissingMetadataError()
            if self.cancelled:
                return

            self._artifact_reference = image_url
            self._set_phase(Phase.STREAMING)
            self.scheduler.start()

            # Only the buffer is written here; visible text belongs to the scheduler.
            async for text in response.aiter_text():
                if self.cancelled:
                    break
                self._append(text)

    def _complete(self) -> None:
        self.scheduler.cancel()
        self.render()
        self._set_phase(Phase.COMPLETE)
        logger.info("stream complete topic=%r chars=%d", self.topic, len(self._buffered))
        if self.on_complete is not None:
            self.on_complete(
                HistoryEntry(
                    id=datetime.now(timezone.utc).isoformat(),
                    topic=self.topic,
                    explanation=self._buffered,
                    image_url=self._artifact_reference or "",
                    created_at=datetime.now(timezone.utc).isoformat(),
                )
            )

    def _fail(self, error: Exception) -> None:
        self.scheduler.cancel()
        # Keep whatever arrived before the failure.
        self.render()
        self._set_phase(Phase.FAILED, f"Failed to generate content: {error}")
        logger.warning("stream failed topic=%r chars=%d error=%s", self.topic, len(self._buffered), error)
