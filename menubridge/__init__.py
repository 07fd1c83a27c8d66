"""KawaiiLogger menubar bridge package."""

__version__ = "1.0.0"
