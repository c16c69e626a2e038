"""Lambda handlers."""

from .monitor_handler import handler

__all__ = ["handler"]
