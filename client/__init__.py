from client.consumer import StreamConsumer
from client.exceptions import (
    MissingMetadataError,
    RelayResponseError,
    StreamConsumerError,
    TransportError,
)
from client.scheduler import RenderScheduler
from client.session import StreamSession
from client.state import ClientStreamState, HistoryEntry, Phase
from client.transport import RelayClient

__all__ = [
    "ClientStreamState",
    "HistoryEntry",
    "MissingMetadataError",
    "Phase",
    "RelayClient",
    "RelayResponseError",
    "RenderScheduler",
    "StreamConsumer",
    "StreamConsumerError",
    "StreamSession",
    "TransportError",
]
