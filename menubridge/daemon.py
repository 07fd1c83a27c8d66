#!/usr/bin/env python3
"""Async orchestrator for the KawaiiLogger menubar bridge.

The daemon owns one listening Unix socket, one reader task per connected
producer and a display sink that shows the latest metrics snapshot.

Architecture:
    main() -> MenuBridgeDaemon -> TaskGroup
        └── accept-loop (ChannelEndpoint.accept_loop, supervised)
              └── one ConnectionReader task per producer

The display's GUI loop owns the main thread; the event loop runs on a
worker thread. Shutdown is driven by a one-shot quit signal, resolved by
the display's "Quit" item or by SIGINT/SIGTERM.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import signal
import socket
import sys
import threading
from typing import NoReturn

# uvloop is a hard dependency of the entry point.
import uvloop

from .config.logging import configure_logging
from .config.settings import RuntimeConfig, load_runtime_config
from .display.base import DisplaySink
from .errors import ConfigError, EndpointBindError
from .services.task_supervisor import SupervisorStats, supervise_task
from .state.lifecycle import BridgeLifecycle
from .state.publisher import StatePublisher
from .transport.endpoint import ChannelEndpoint
from .transport.reader import ConnectionReader, ReaderStats

logger = logging.getLogger("menubridge")


class MenuBridgeDaemon:
    """Wires the endpoint, readers, publisher and display together."""

    def __init__(self, config: RuntimeConfig, display: DisplaySink) -> None:
        self.config = config
        self.display = display
        self.publisher = StatePublisher(display)
        self.endpoint = ChannelEndpoint(
            config.socket_path,
            mode=config.socket_mode,
            accept_retry_delay=config.accept_retry_delay,
        )
        self.lifecycle = BridgeLifecycle()
        self.reader_stats = ReaderStats()
        self.supervisor_stats = SupervisorStats()

        self._loop: asyncio.AbstractEventLoop | None = None
        self._quit = asyncio.Event()
        self._accept_task: asyncio.Task[None] | None = None
        self._started = False
        self._shutdown_started = False

    @property
    def quit_requested(self) -> bool:
        return self._quit.is_set()

    def start(self) -> None:
        """Bind the endpoint and start the display.

        Must be called from the event loop that will run the daemon.

        Raises:
            EndpointBindError: the socket address could not be claimed.
        """
        if self._started:
            return
        self._loop = asyncio.get_running_loop()
        self._started = True

        self.endpoint.bind()
        atexit.register(self.endpoint.close)
        self.lifecycle.bound()
        self.lifecycle.activate()

        self.display.start(self._display_ready_threadsafe, self.request_quit)
        logger.info("Listening on %s", self.config.socket_path)

    async def run(self) -> None:
        """Serve until the quit signal resolves, then shut down."""
        try:
            self.start()
            async with asyncio.TaskGroup() as task_group:
                self._accept_task = task_group.create_task(
                    supervise_task(
                        "accept-loop",
                        self._accept_connections,
                        fatal_exceptions=(EndpointBindError,),
                        stats=self.supervisor_stats,
                    ),
                    name="menubridge-accept-loop",
                )
                await self._quit.wait()
                logger.info("Quit requested; shutting down.")
                await self._stop_accepting()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Stop accepting, close the endpoint and the display. Idempotent."""
        if self._shutdown_started:
            return
        self._shutdown_started = True
        self.lifecycle.shutdown()

        await self._stop_accepting()
        self.endpoint.close()
        atexit.unregister(self.endpoint.close)

        try:
            self.display.stop()
        except Exception:
            logger.exception("Error stopping display")

        logger.info("Receiver stats", extra={"stats": self.stats()})
        self.lifecycle.finish()
        logger.info("Menubar bridge stopped.")

    def request_quit(self) -> None:
        """Resolve the quit signal. Safe to call from any thread."""
        loop = self._loop
        if loop is None:
            self._quit.set()
            return
        try:
            loop.call_soon_threadsafe(self._quit.set)
        except RuntimeError:
            # Loop already closed; nothing left to stop.
            logger.debug("Quit requested after the event loop closed.")

    def stats(self) -> dict[str, object]:
        return {
            "state": self.lifecycle.fsm_state,
            "active_connections": self.lifecycle.active_connections,
            "endpoint": self.endpoint.stats.as_dict(),
            "reader": self.reader_stats.as_dict(),
            "publisher": self.publisher.stats.as_dict(),
            "supervisor": self.supervisor_stats.as_dict(),
        }

    def _display_ready_threadsafe(self) -> None:
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._handle_display_ready)
        except RuntimeError:
            logger.debug("Display became ready after the event loop closed.")

    def _handle_display_ready(self) -> None:
        if self.lifecycle.is_terminating:
            return
        self.publisher.mark_ready()
        self.publisher.render_tick()
        self.lifecycle.on_display_ready()

    async def _accept_connections(self) -> None:
        await self.endpoint.accept_loop(self._handle_connection)

    async def _handle_connection(self, conn: socket.socket) -> None:
        reader = ConnectionReader(
            self.publisher,
            read_size=self.config.read_size,
            framing=self.config.framing,
            max_message_bytes=self.config.max_message_bytes,
            stats=self.reader_stats,
        )
        self.lifecycle.connection_opened()
        try:
            await reader.run(conn)
        finally:
            self.lifecycle.connection_closed()

    async def _stop_accepting(self) -> None:
        task = self._accept_task
        if task is None or task.done():
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


def start_event_loop_thread(daemon: MenuBridgeDaemon) -> tuple[threading.Thread, list[BaseException]]:
    """Run *daemon* on a uvloop event loop in a worker thread.

    The main thread stays free for the display's GUI loop. Whatever ends the
    worker, the display is stopped so the GUI loop returns too. An exception
    that escapes the daemon is appended to the returned list.
    """
    errors: list[BaseException] = []

    def _worker() -> None:
        try:
            asyncio.run(daemon.run(), loop_factory=uvloop.new_event_loop)
        except BaseException as exc:
            errors.append(exc)
        finally:
            daemon.display.stop()

    thread = threading.Thread(target=_worker, name="menubridge-loop", daemon=True)
    thread.start()
    return thread, errors


def main() -> NoReturn:  # pragma: no cover (Entry point wrapper)
    try:
        config = load_runtime_config()
    except ConfigError as exc:
        logger.critical("%s", exc)
        sys.exit(1)
    configure_logging(config)

    # Needs the "tray" extra.
    from .display.tray import TrayDisplay

    display = TrayDisplay(title=config.tray_title, tooltip=config.tray_tooltip)
    logger.info("Starting menubar bridge on %s", config.socket_path)

    try:
        daemon = MenuBridgeDaemon(config, display)
        for sig in (signal.SIGINT, signal.SIGTERM):
            signal.signal(sig, lambda _signum, _frame: daemon.request_quit())

        worker, errors = start_event_loop_thread(daemon)
        try:
            display.run()
        finally:
            daemon.request_quit()
            worker.join()
        if errors:
            raise errors[0]
        sys.exit(0)
    except KeyboardInterrupt:
        logger.info("Daemon interrupted by user.")
        sys.exit(0)
    except EndpointBindError as exc:
        logger.critical("Startup aborted: %s", exc)
        sys.exit(1)
    except ExceptionGroup as exc_group:
        for group_exc in exc_group.exceptions:
            logger.critical("Fatal error in task group: %s", group_exc, exc_info=group_exc)
        sys.exit(1)
    except OSError as exc:
        logger.critical("System/OS error during daemon execution: %s", exc, exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
