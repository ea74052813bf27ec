"""Todo-related Pydantic schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict, Field, StrictBool

from .base import CamelModel

TODO_READ_EXAMPLE = {
    "id": "0d6f1c2e-8a55-4c1e-9d0b-3f0e0a6f9c11",
    "ownerId": "6523a1f0c2d4e5f60718293a",
    "title": "Pick up film from the lab",
    "completed": False,
    "attachmentKey": "uploads/2f9c0d1e/receipt.jpg",
    "createdAt": "2024-03-01T09:15:00Z",
    "updatedAt": "2024-03-01T09:15:00Z",
}


class TodoCreate(CamelModel):
    """Payload for creating a new todo."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "title": "Pick up film from the lab",
                "attachmentKey": "uploads/2f9c0d1e/receipt.jpg",
            }
        }
    )

    title: str | None = Field(default=None, description="Short title, required and non-empty")
    attachment_key: str | None = Field(default=None, description="Object key of an uploaded image")


class TodoUpdate(CamelModel):
    """Payload for partially updating a todo.

    Fields left out are untouched; ``attachmentKey: null`` clears the image.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "completed": True,
                "attachmentKey": None,
            }
        }
    )

    completed: StrictBool | None = Field(default=None)
    title: str | None = Field(default=None)
    attachment_key: str | None = Field(default=None)


class TodoRead(CamelModel):
    """Public representation of a todo."""

    model_config = ConfigDict(
        from_attributes=True,
        json_schema_extra={"example": TODO_READ_EXAMPLE},
    )

    id: str
    owner_id: str
    title: str
    completed: bool
    attachment_key: str | None = None
    created_at: datetime
    updated_at: datetime


class TodoResponse(CamelModel):
    """Envelope around a single todo."""

    todo: TodoRead


class TodoListResponse(CamelModel):
    """Envelope around the caller's todos, newest first."""

    model_config = ConfigDict(json_schema_extra={"example": {"todos": [TODO_READ_EXAMPLE]}})

    todos: list[TodoRead]


class DeleteResponse(CamelModel):
    """Acknowledgement returned after a delete."""

    success: bool = True


__all__ = [
    "DeleteResponse",
    "TodoCreate",
    "TodoListResponse",
    "TodoRead",
    "TodoResponse",
    "TodoUpdate",
]
