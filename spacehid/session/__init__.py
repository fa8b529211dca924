"""Session layer: single-device lifecycle and motion event dispatch."""

from .events import EventDispatcher
from .manager import SessionManager

__all__ = ["EventDispatcher", "SessionManager"]
