"""Display sinks that render published snapshots."""

from .base import DisplayField, DisplaySink, format_fields, initial_fields

__all__ = ["DisplayField", "DisplaySink", "format_fields", "initial_fields"]
