"""Pictodo: a multi-tenant todo API with OAuth login and image attachments."""

from __future__ import annotations

__version__ = "0.1.0"

__all__ = ["__version__"]
