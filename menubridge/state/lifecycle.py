"""Process lifecycle state machine for the menubar bridge."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from transitions import Machine

logger = logging.getLogger("menubridge.lifecycle")


class BridgeLifecycle:
    """Tracks ``starting -> listening -> running -> shutting_down -> stopped``.

    ``running`` needs both the endpoint bound and the display ready; the
    ``activate`` trigger is attempted after each of the two, so they may
    complete in either order.
    """

    if TYPE_CHECKING:
        # FSM generated methods and attributes for static analysis
        fsm_state: str
        bound: Callable[[], bool]
        activate: Callable[[], bool]
        shutdown: Callable[[], bool]
        finish: Callable[[], bool]

    STATE_STARTING = "starting"
    STATE_LISTENING = "listening"
    STATE_RUNNING = "running"
    STATE_SHUTTING_DOWN = "shutting_down"
    STATE_STOPPED = "stopped"

    def __init__(self) -> None:
        self.display_ready = False
        self.active_connections = 0

        self.state_machine = Machine(
            model=self,
            states=[
                self.STATE_STARTING,
                self.STATE_LISTENING,
                self.STATE_RUNNING,
                self.STATE_SHUTTING_DOWN,
                self.STATE_STOPPED,
            ],
            initial=self.STATE_STARTING,
            ignore_invalid_triggers=True,
            auto_transitions=False,
            model_attribute="fsm_state",
            after_state_change="_log_state",
        )

        self.state_machine.add_transition(
            trigger="bound", source=self.STATE_STARTING, dest=self.STATE_LISTENING
        )
        self.state_machine.add_transition(
            trigger="activate",
            source=self.STATE_LISTENING,
            dest=self.STATE_RUNNING,
            conditions="is_display_ready",
        )
        self.state_machine.add_transition(
            trigger="shutdown",
            source=[self.STATE_STARTING, self.STATE_LISTENING, self.STATE_RUNNING],
            dest=self.STATE_SHUTTING_DOWN,
        )
        self.state_machine.add_transition(
            trigger="finish", source=self.STATE_SHUTTING_DOWN, dest=self.STATE_STOPPED
        )

    def is_display_ready(self) -> bool:
        return self.display_ready

    def on_display_ready(self) -> None:
        self.display_ready = True
        self.activate()

    @property
    def is_running(self) -> bool:
        return self.fsm_state == self.STATE_RUNNING

    @property
    def is_terminating(self) -> bool:
        return self.fsm_state in (self.STATE_SHUTTING_DOWN, self.STATE_STOPPED)

    def connection_opened(self) -> None:
        self.active_connections += 1

    def connection_closed(self) -> None:
        self.active_connections = max(0, self.active_connections - 1)

    def _log_state(self) -> None:
        logger.info("Bridge state: %s", self.fsm_state)


__all__ = ["BridgeLifecycle"]
