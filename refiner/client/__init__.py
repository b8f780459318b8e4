"""Client-side helpers: stream consumption, HTTP access, local history."""

from refiner.client.history import HistoryEntry, HistoryStore
from refiner.client.http_client import ProcessingFailed, RefinerClient, StreamBroken
from refiner.client.stream_consumer import StreamConsumer

__all__ = [
    "HistoryEntry",
    "HistoryStore",
    "ProcessingFailed",
    "RefinerClient",
    "StreamBroken",
    "StreamConsumer",
]
