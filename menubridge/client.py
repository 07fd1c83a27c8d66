"""Producer-side client for the menubar bridge socket."""

from __future__ import annotations

import logging
import os
import socket
from types import TracebackType

import tenacity

from .const import (
    CLIENT_CONNECT_ATTEMPTS,
    CLIENT_CONNECT_DELAY,
    DEFAULT_SOCKET_PATH,
    MESSAGE_DELIMITER,
)
from .protocol.codec import encode
from .protocol.structures import MetricsSnapshot

logger = logging.getLogger("menubridge.client")


class MetricsClient:
    """Blocking client that pushes snapshots to a running bridge.

    The bridge may still be starting when a producer launches, so
    ``connect`` retries for a while before giving up.
    """

    def __init__(
        self,
        path: str | os.PathLike[str] = DEFAULT_SOCKET_PATH,
        *,
        attempts: int = CLIENT_CONNECT_ATTEMPTS,
        delay: float = CLIENT_CONNECT_DELAY,
    ) -> None:
        self.path = os.fspath(path)
        self.attempts = attempts
        self.delay = delay
        self._sock: socket.socket | None = None

    @property
    def connected(self) -> bool:
        return self._sock is not None

    def connect(self) -> None:
        """Connect to the bridge, retrying while the socket is unavailable.

        Raises:
            OSError: the last connection attempt failed.
        """
        if self._sock is not None:
            return
        retryer = tenacity.Retrying(
            stop=tenacity.stop_after_attempt(self.attempts),
            wait=tenacity.wait_fixed(self.delay),
            retry=tenacity.retry_if_exception_type(OSError),
            before_sleep=self._log_retry,
            reraise=True,
        )
        for attempt in retryer:
            with attempt:
                self._sock = self._open()
        logger.info("Connected to %s", self.path)

    def _open(self) -> socket.socket:
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
        try:
            sock.connect(self.path)
        except OSError:
            sock.close()
            raise
        return sock

    def _log_retry(self, retry_state: tenacity.RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.debug(
            "Connect attempt %d to %s failed (%s)",
            retry_state.attempt_number,
            self.path,
            exc,
        )

    def send(self, snapshot: MetricsSnapshot) -> None:
        """Write one newline-terminated message."""
        if self._sock is None:
            raise RuntimeError("send() called before connect()")
        self._sock.sendall(encode(snapshot) + MESSAGE_DELIMITER)

    def close(self) -> None:
        sock, self._sock = self._sock, None
        if sock is not None:
            sock.close()

    def __enter__(self) -> MetricsClient:
        self.connect()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()


__all__ = ["MetricsClient"]
