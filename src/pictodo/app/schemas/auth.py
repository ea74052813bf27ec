"""Schemas for the OAuth redirect relay."""

from __future__ import annotations

from .base import CamelModel
from .user import UserPublic


class AuthCallbackResponse(CamelModel):
    """Tokens handed back by the provider plus the mirrored user."""

    access_token: str
    refresh_token: str | None = None
    user: UserPublic


__all__ = ["AuthCallbackResponse"]
