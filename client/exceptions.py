"""Exceptions raised on the consuming side of the relay."""

from __future__ import annotations


class StreamConsumerError(Exception):
    """Base class for client-side stream failures."""


class RelayResponseError(StreamConsumerError):
    """The relay answered with a non-2xx status before streaming started."""

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(message)


class MissingMetadataError(StreamConsumerError):
    """The relay response carried no X-Image-Url header."""

    def __init__(self, message: str = "Did not receive an image URL from the server.") -> None:
        super().__init__(message)


class TransportError(StreamConsumerError):
    """Reading the body failed mid-stream (connection reset, protocol error, timeout)."""
