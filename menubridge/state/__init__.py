"""Runtime state for the menubar bridge."""

from .lifecycle import BridgeLifecycle
from .publisher import PublisherStats, StatePublisher

__all__ = ["BridgeLifecycle", "PublisherStats", "StatePublisher"]
