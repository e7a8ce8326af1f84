"""Utility helpers for driveup."""
from .events import EventEmitter
from .formatting import format_size

__all__ = ["EventEmitter", "format_size"]
