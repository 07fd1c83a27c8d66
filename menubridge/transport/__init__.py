"""Transport layer: channel endpoint and connection readers."""

from .endpoint import ChannelEndpoint, ConnectionHandler, EndpointStats
from .reader import ConnectionReader, ReaderStats

__all__ = [
    "ChannelEndpoint",
    "ConnectionHandler",
    "ConnectionReader",
    "EndpointStats",
    "ReaderStats",
]
