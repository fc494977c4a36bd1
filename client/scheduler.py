"""Fixed-cadence render flush, decoupled from chunk arrival."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from client.config import DEFAULT_RENDER_INTERVAL

logger = logging.getLogger(__name__)


class RenderScheduler:
    """Calls ``render`` every ``interval`` seconds until cancelled.

    ``render`` must be idempotent: a tick with nothing new to show is a no-op.
    ``start`` on a running scheduler does nothing; ``cancel`` stops it outright and may be
    called any number of times.
    """

    def __init__(self, render: Callable[[], object], interval: float = DEFAULT_RENDER_INTERVAL) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._render = render
        self.interval = interval
        self.ticks = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run(), name="render-scheduler")

    def tick(self) -> None:
        self.ticks += 1
        self._render()

    def cancel(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.tick()
            except Exception:
                logger.exception("render tick failed")
