"""Async HTTP access to the relay using ``httpx``."""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from typing import Any

import httpx

from client.exceptions import RelayResponseError
from client.state import HistoryEntry

IMAGE_URL_HEADER = "X-Image-Url"

TokenProvider = Callable[[], "str | Awaitable[str]"]


def error_message(r: httpx.Response) -> str:
    """Pull the server-reported reason out of an error response."""
    try:
        body: Any = r.json()
    except Exception:
        body = None
    if isinstance(body, dict):
        for key in ("message", "detail", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Network response was not ok (status: {r.status_code})"


class RelayClient:
    """Authenticated client for ``POST /api/generate`` and ``GET /api/history``.

    ``token_provider`` is called before every request so short-lived tokens can be refreshed;
    it may be sync or async.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider | str | None = None,
        *,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        if isinstance(token_provider, str):
            token = token_provider
            token_provider = lambda: token  # noqa: E731
        self._token_provider = token_provider
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, transport=transport)

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = self._token_provider()
        if inspect.isawaitable(token):
            token = await token
        return {"Authorization": f"Bearer {token}"} if token else {}

    @asynccontextmanager
    async def open_generate(self, topic: str) -> AsyncIterator[httpx.Response]:
        """Open a streaming generate request; the response is closed when the block exits."""
        headers = await self._auth_headers()
        async with self._client.stream("POST", "/api/generate", json={"topic": topic}, headers=headers) as r:
            yield r

    async def fetch_history(self) -> list[HistoryEntry]:
        headers = await self._auth_headers()
        r = await self._client.get("/api/history", headers=headers)
        if not r.is_success:
            raise RelayResponseError(r.status_code, error_message(r))
        return [HistoryEntry.from_wire(item) for item in r.json()]

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> RelayClient:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
