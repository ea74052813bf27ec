"""Todo domain models built with SQLModel."""

from __future__ import annotations

from uuid import uuid4

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .common import TimestampMixin

TITLE_MAX_LENGTH = 255


def generate_todo_id() -> str:
    """Return a fresh opaque identifier for a todo."""
    return str(uuid4())


class TodoBase(SQLModel, table=False):
    """Shared attributes for todo models."""

    title: str = Field(
        max_length=TITLE_MAX_LENGTH,
        sa_column=sa.Column(sa.String(length=TITLE_MAX_LENGTH), nullable=False),
    )
    completed: bool = Field(
        default=False,
        sa_column=sa.Column(sa.Boolean(), nullable=False, server_default=sa.false()),
    )
    attachment_key: str | None = Field(
        default=None,
        sa_column=sa.Column(sa.String(length=512), nullable=True),
    )
    owner_id: str = Field(
        sa_column=sa.Column(
            sa.String(length=255),
            sa.ForeignKey("users.external_id", ondelete="CASCADE"),
            nullable=False,
        ),
    )


class Todo(TodoBase, TimestampMixin, table=True):
    """Persistent todo model."""

    __tablename__ = "todos"
    __table_args__ = (
        sa.CheckConstraint("length(title) > 0", name="ck_todos_title_length"),
        sa.Index("ix_todos_owner_id", "owner_id"),
        sa.Index("ix_todos_owner_id_created_at", "owner_id", "created_at"),
        sa.Index("ix_todos_completed", "completed"),
        sa.UniqueConstraint("attachment_key", name="uq_todos_attachment_key"),
    )

    id: str = Field(default_factory=generate_todo_id, primary_key=True, max_length=36)


__all__ = ["TITLE_MAX_LENGTH", "Todo", "TodoBase", "generate_todo_id"]
