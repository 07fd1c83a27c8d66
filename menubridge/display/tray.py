"""System-tray display sink built on pystray."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

import pystray
from PIL import Image, ImageDraw

from ..const import DEFAULT_TRAY_TITLE, DEFAULT_TRAY_TOOLTIP
from .base import DisplayField, initial_fields

logger = logging.getLogger("menubridge.tray")

_ICON_SIZE = 64
_BAR_COLOURS = ((255, 153, 204, 255), (153, 204, 255, 255), (204, 255, 153, 255))


def create_icon_image(size: int = _ICON_SIZE) -> Image.Image:
    """Draw a small bar-chart glyph for the tray."""
    image = Image.new("RGBA", (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(image)
    bar_width = size // 5
    gap = (size - 3 * bar_width) // 4
    for index, colour in enumerate(_BAR_COLOURS):
        height = size * (index + 2) // 5
        left = gap + index * (bar_width + gap)
        draw.rectangle((left, size - height, left + bar_width, size - 1), fill=colour)
    return image


class TrayDisplay:
    """Menu with one row per metric plus "Quit".

    ``start`` only builds the icon. The GUI loop runs in ``run``, which must
    be called from the main thread (a macOS requirement).
    """

    def __init__(
        self,
        *,
        title: str = DEFAULT_TRAY_TITLE,
        tooltip: str = DEFAULT_TRAY_TOOLTIP,
    ) -> None:
        self.title = title
        self.tooltip = tooltip
        self._texts = initial_fields()
        self._lock = threading.Lock()
        self._icon: pystray.Icon | None = None
        self._created = threading.Event()
        self._stopped = False
        self._on_ready: Callable[[], None] | None = None
        self._on_dismiss: Callable[[], None] | None = None

    def _text_for(self, field: DisplayField) -> Callable[[pystray.MenuItem], str]:
        def _text(_item: pystray.MenuItem) -> str:
            with self._lock:
                return self._texts[field]

        return _text

    def _build_menu(self) -> pystray.Menu:
        rows = [pystray.MenuItem(self._text_for(field), None, enabled=False) for field in DisplayField]
        return pystray.Menu(
            pystray.MenuItem(self.title, None, enabled=False),
            *rows,
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", self._handle_quit),
        )

    def start(self, on_ready: Callable[[], None], on_dismiss: Callable[[], None]) -> None:
        if self._icon is not None:
            return
        self._on_ready = on_ready
        self._on_dismiss = on_dismiss
        self._icon = pystray.Icon(
            "kawaiilogger",
            icon=create_icon_image(),
            title=self.tooltip,
            menu=self._build_menu(),
        )
        self._created.set()

    def run(self, timeout: float | None = None) -> None:
        """Drive the tray until ``stop`` is called. Blocks the calling thread.

        Waits up to *timeout* seconds for ``start``; returns at once when the
        display is stopped first.
        """
        if not self._created.wait(timeout):
            logger.warning("Tray was never started; nothing to run.")
            return
        with self._lock:
            icon = None if self._stopped else self._icon
        if icon is None:
            return
        icon.run(setup=self._setup)

    def _setup(self, icon: pystray.Icon) -> None:
        with self._lock:
            stopped = self._stopped
        if stopped:
            icon.stop()
            return
        icon.visible = True
        logger.info("Tray ready")
        if self._on_ready is not None:
            self._on_ready()

    def _handle_quit(self, _icon: pystray.Icon, _item: pystray.MenuItem) -> None:
        logger.info("Quit clicked, cleaning up...")
        if self._on_dismiss is not None:
            self._on_dismiss()

    def set_display_text(self, field: DisplayField, text: str) -> None:
        with self._lock:
            if self._texts.get(field) == text:
                return
            self._texts[field] = text
        icon = self._icon
        if icon is not None:
            icon.update_menu()

    def stop(self) -> None:
        """Ask the GUI loop to exit. Safe to call from any thread."""
        with self._lock:
            self._stopped = True
            icon, self._icon = self._icon, None
        self._created.set()
        if icon is None:
            return
        try:
            icon.stop()
        except Exception:
            logger.exception("Error stopping tray icon")


__all__ = ["TrayDisplay", "create_icon_image"]
