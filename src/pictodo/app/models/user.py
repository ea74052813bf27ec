"""User domain models built with SQLModel."""

from __future__ import annotations

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin


class UserBase(SQLModel, table=False):
    """Profile attributes mirrored from the identity provider."""

    external_id: str = Field(
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=False, unique=True),
    )
    email: str | None = Field(
        default=None,
        max_length=320,
        sa_column=sa.Column(sa.String(length=320), nullable=True),
    )
    full_name: str | None = Field(
        default=None,
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=True),
    )
    avatar: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.Text(), nullable=True),
    )
    wallet_address: str | None = Field(
        default=None,
        max_length=255,
        sa_column=sa.Column(sa.String(length=255), nullable=True),
    )


class User(UserBase, TimestampMixin, table=True):
    """Persistent user model, one row per external identity."""

    __tablename__ = "users"

    id: int | None = Field(default=None, primary_key=True)


__all__ = ["User", "UserBase"]
