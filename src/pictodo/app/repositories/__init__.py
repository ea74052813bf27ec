"""Database repositories for encapsulating persistence logic."""

from __future__ import annotations

from .todos import TodoRepository
from .users import UserRepository

__all__ = ["TodoRepository", "UserRepository"]
