"""Domain models exposed for the Pictodo service."""

from __future__ import annotations

from .common import TimestampMixin, UTCDateTime, utcnow
from .todo import TITLE_MAX_LENGTH, Todo, TodoBase, generate_todo_id
from .user import User, UserBase

__all__ = [
    "TITLE_MAX_LENGTH",
    "TimestampMixin",
    "Todo",
    "TodoBase",
    "UTCDateTime",
    "User",
    "UserBase",
    "generate_todo_id",
    "utcnow",
]
