"""Background service helpers."""

from .task_supervisor import SupervisorStats, supervise_task

__all__ = ["SupervisorStats", "supervise_task"]
