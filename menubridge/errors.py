"""Exception hierarchy for the menubar bridge."""

from __future__ import annotations


class MenuBridgeError(Exception):
    """Base class for bridge errors."""


class DecodeError(MenuBridgeError, ValueError):
    """Raised when an inbound message is not a valid metrics snapshot."""


class EndpointBindError(MenuBridgeError, OSError):
    """Raised when the channel endpoint cannot be bound.

    Startup cannot proceed without the socket, so this is fatal.
    """


class ConfigError(MenuBridgeError, ValueError):
    """Raised when the configuration file cannot be read or validated."""


__all__ = ["MenuBridgeError", "DecodeError", "EndpointBindError", "ConfigError"]
