"""User-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from .base import CamelModel


class UserPublic(CamelModel):
    """Public representation of a user."""

    model_config = ConfigDict(from_attributes=True)

    external_id: str
    email: str | None = None
    full_name: str | None = None
    avatar: str | None = None
    wallet_address: str | None = None
    created_at: datetime
    updated_at: datetime


class UserResponse(CamelModel):
    """Envelope around the authenticated user."""

    user: UserPublic


__all__ = ["UserPublic", "UserResponse"]
