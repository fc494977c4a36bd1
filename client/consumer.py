"""
Stream consumer: submits topics to the relay and exposes the current session's state.

At most one session is live per consumer. Every operation that changes what is
on screen (a new submission, selecting a history entry, teardown) cancels the
current session first, so its scheduler and read loop can never write to what
the consumer shows next.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from client.config import DEFAULT_RENDER_INTERVAL
from client.exceptions import StreamConsumerError
from client.narrator import Narrator
from client.session import StreamSession
from client.state import ClientStreamState, HistoryEntry
from client.transport import RelayClient

logger = logging.getLogger(__name__)

Listener = Callable[[ClientStreamState], None]


class StreamConsumer:
    def __init__(
        self,
        relay: RelayClient,
        *,
        render_interval: float = DEFAULT_RENDER_INTERVAL,
        narrator: Narrator | None = None,
    ) -> None:
        self.relay = relay
        self.render_interval = render_interval
        self.narrator = narrator
        self.history: list[HistoryEntry] = []
        self.history_error: str | None = None
        self._listeners: list[Listener] = []
        self._session = StreamSession(render_interval=render_interval)
        self._closed = False

    @property
    def session(self) -> StreamSession:
        return self._session

    @property
    def state(self) -> ClientStreamState:
        return self._session.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register for state changes of whichever session is current. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _on_session_change(self, session: StreamSession, state: ClientStreamState) -> None:
        if session is not self._session:
            return
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("consumer listener failed")

    def _on_session_complete(self, entry: HistoryEntry) -> None:
        # Optimistic: built from what we streamed, not re-fetched.
        self.history.insert(0, entry)

    def _replace_session(self, session: StreamSession) -> StreamSession:
        previous = self._session
        previous.cancel()
        self._session = session
        self._on_session_change(session, session.state)
        return session

    # ---- operations ----

    async def submit(self, topic: str) -> StreamSession:
        """Start streaming `topic`; the previous session is cancelled first."""
        if self._closed:
            raise RuntimeError("consumer is closed")
        topic = (topic or "").strip()
        if not topic:
            raise ValueError("topic must not be empty")
        session = StreamSession(
            topic,
            self.relay,
            render_interval=self.render_interval,
            on_change=self._on_session_change,
            on_complete=self._on_session_complete,
        )
        self._replace_session(session)
        session.start()
        logger.info("submitted topic=%r", topic)
        return session

    async def generate(self, topic: str) -> ClientStreamState:
        """Submit and wait for the session to finish."""
        session = await self.submit(topic)
        return await session.wait()

    def select_history(self, entry: HistoryEntry) -> StreamSession:
        """Show a stored entry in place of whatever is current, abandoning any in-flight stream."""
        session = StreamSession.from_history(
            entry,
            render_interval=self.render_interval,
            on_change=self._on_session_change,
        )
        return self._replace_session(session)

    async def refresh_history(self) -> list[HistoryEntry]:
        """Replace the local history with the server's. Failures are recorded, not raised."""
        try:
            self.history = await self.relay.fetch_history()
            self.history_error = None
        except (StreamConsumerError, httpx.HTTPError, ValueError) as e:
            logger.warning("could not fetch history: %s", e)
            self.history_error = "Could not load your history. Please try refreshing."
        return self.history

    def speak(self) -> bool:
        if self.narrator is None:
            return False
        return self._session.speak(self.narrator)

    def stop_speaking(self) -> None:
        self._session.stop_speaking()

    async def aclose(self) -> None:
        """Teardown: stop the scheduler, release the read handle, close the HTTP client."""
        if self._closed:
            return
        self._closed = True
        await self._session.aclose()
        await self.relay.aclose()

    async def __aenter__(self) -> StreamConsumer:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
