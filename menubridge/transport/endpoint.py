"""Unix-domain channel endpoint for the menubar bridge."""

from __future__ import annotations

import asyncio
import logging
import os
import socket
import threading
from collections.abc import Awaitable, Callable
from pathlib import Path

import msgspec

from ..const import DEFAULT_ACCEPT_RETRY_DELAY, DEFAULT_LISTEN_BACKLOG, DEFAULT_SOCKET_MODE
from ..errors import EndpointBindError

logger = logging.getLogger("menubridge.endpoint")

ConnectionHandler = Callable[[socket.socket], Awaitable[None]]


class EndpointStats(msgspec.Struct):
    connections_accepted: int = 0
    accept_errors: int = 0

    def as_dict(self) -> dict[str, int]:
        return msgspec.structs.asdict(self)


class ChannelEndpoint:
    """Listening socket bound at a fixed filesystem address.

    ``close`` may be called any number of times, from any thread, including
    before ``bind`` ran or after it failed. Only a socket file this endpoint
    created is removed.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        mode: int = DEFAULT_SOCKET_MODE,
        backlog: int = DEFAULT_LISTEN_BACKLOG,
        accept_retry_delay: float = DEFAULT_ACCEPT_RETRY_DELAY,
    ) -> None:
        self.path = Path(path)
        self.mode = mode
        self.backlog = backlog
        self.accept_retry_delay = accept_retry_delay
        self.stats = EndpointStats()
        self._sock: socket.socket | None = None
        self._bound_inode: int | None = None
        self._close_lock = threading.Lock()
        self._closed = False
        self._connection_tasks: set[asyncio.Task[None]] = set()

    @property
    def is_bound(self) -> bool:
        return self._sock is not None

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def active_connections(self) -> int:
        return len(self._connection_tasks)

    def bind(self) -> None:
        """Remove any stale socket file, then bind and listen.

        Raises:
            EndpointBindError: the stale file cannot be removed or the socket
                cannot be bound.
        """
        with self._close_lock:
            if self._closed:
                raise EndpointBindError(f"Endpoint {self.path} is already closed")
            if self._sock is not None:
                return

            try:
                self.path.unlink()
                logger.info("Removed stale socket file %s", self.path)
            except FileNotFoundError:
                pass
            except OSError as exc:
                raise EndpointBindError(f"Failed to remove existing socket file {self.path}: {exc}") from exc

            sock = socket.socket(socket.AF_UNIX, socket.SOCK_STREAM)
            bound = False
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                sock.bind(str(self.path))
                bound = True
                os.chmod(self.path, self.mode)
                sock.listen(self.backlog)
                sock.setblocking(False)
                self._bound_inode = os.stat(self.path).st_ino
            except OSError as exc:
                sock.close()
                if bound:
                    self._discard_partial_bind()
                raise EndpointBindError(f"Failed to create Unix socket at {self.path}: {exc}") from exc

            self._sock = sock
        logger.info("Unix socket created at %s", self.path)

    async def accept_loop(self, handler: ConnectionHandler) -> None:
        """Accept connections until cancelled, one handler task per client.

        Accept errors are logged and the loop carries on. When the loop is
        cancelled every in-flight handler is cancelled with it.
        """
        sock = self._sock
        if sock is None:
            raise RuntimeError("accept_loop() called before bind()")
        loop = asyncio.get_running_loop()

        try:
            while True:
                try:
                    conn, _ = await loop.sock_accept(sock)
                except OSError as exc:
                    if self._closed:
                        logger.debug("Endpoint closed; accept loop exiting.")
                        return
                    self.stats.accept_errors += 1
                    logger.warning("Error accepting connection: %s", exc)
                    await asyncio.sleep(self.accept_retry_delay)
                    continue

                self.stats.connections_accepted += 1
                conn.setblocking(False)
                logger.info("Client connected (active=%d)", len(self._connection_tasks) + 1)
                task = asyncio.create_task(
                    self._serve(handler, conn),
                    name=f"menubridge-conn-{self.stats.connections_accepted}",
                )
                self._connection_tasks.add(task)
                task.add_done_callback(self._connection_tasks.discard)
        finally:
            await self._cancel_connections()

    async def _serve(self, handler: ConnectionHandler, conn: socket.socket) -> None:
        with conn:
            try:
                await handler(conn)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Connection handler failed")

    async def _cancel_connections(self) -> None:
        tasks = list(self._connection_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    def close(self) -> None:
        """Close the socket and remove its address. Idempotent."""
        with self._close_lock:
            if self._closed:
                return
            self._closed = True
            sock, self._sock = self._sock, None
            inode, self._bound_inode = self._bound_inode, None

        if sock is not None:
            try:
                sock.close()
            except OSError as exc:
                logger.debug("Ignoring error while closing socket: %s", exc)

        if inode is not None:
            self._remove_socket_file(inode)
        logger.info("Endpoint %s closed", self.path)

    def _discard_partial_bind(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to remove socket file %s: %s", self.path, exc)

    def _remove_socket_file(self, inode: int) -> None:
        try:
            if os.stat(self.path).st_ino != inode:
                # Another instance has bound the address since.
                logger.warning("Socket file %s was replaced; leaving it in place.", self.path)
                return
            self.path.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Failed to remove socket file %s: %s", self.path, exc)


__all__ = ["ChannelEndpoint", "ConnectionHandler", "EndpointStats"]
