"""Service layer encapsulating todo lifecycle and attachment consistency."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..errors import ForbiddenError, NotFoundError, ValidationError
from ..models import TITLE_MAX_LENGTH, Todo, utcnow
from ..repositories import TodoRepository, UserRepository
from .storage import AttachmentReleaser

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"title", "completed", "attachment_key"})


def _normalise_title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Title is required.")
    title = value.strip()
    if len(title) > TITLE_MAX_LENGTH:
        raise ValidationError(f"Title must be at most {TITLE_MAX_LENGTH} characters.")
    return title


def _normalise_attachment_key(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("Attachment key must be a string or null.")
    return value.strip() or None


def _attachment_in_use(attachment_key: str) -> ValidationError:
    return ValidationError(
        "Attachment key is already attached to another todo.",
        details={"attachment_key": attachment_key},
    )


class TodoService:
    """Owner-scoped todo operations.

    Keeps each todo's single attachment key consistent with the object store:
    whenever a key stops being referenced by a committed row, it is released
    through the attachment gateway. Releases are best-effort; failures are
    logged and never undo the record change.
    """

    def __init__(
        self,
        session: AsyncSession,
        attachments: AttachmentReleaser,
        *,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session = session
        self._repository = TodoRepository(session)
        self._user_repository = UserRepository(session)
        self._attachments = attachments
        self._clock = clock

    @property
    def repository(self) -> TodoRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    async def list_todos(self, owner_id: str) -> list[Todo]:
        """Return every todo owned by ``owner_id``, newest first."""
        return await self._repository.list_for_owner(owner_id)

    async def create_todo(
        self,
        owner_id: str,
        *,
        title: Any,
        attachment_key: Any = None,
    ) -> Todo:
        """Create a new todo belonging to the specified owner."""
        normalised_title = _normalise_title(title)
        normalised_key = _normalise_attachment_key(attachment_key)
        owner = await self._user_repository.get_by_external_id(owner_id)
        if owner is None:
            raise NotFoundError(f"User {owner_id} does not exist.")
        await self._ensure_attachment_free(normalised_key)

        now = self._clock()
        todo = Todo(
            owner_id=owner_id,
            title=normalised_title,
            completed=False,
            attachment_key=normalised_key,
            created_at=now,
            updated_at=now,
        )
        try:
            await self._repository.add(todo)
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if normalised_key is None:
                raise
            raise _attachment_in_use(normalised_key) from exc
        await self._repository.refresh(todo)
        logger.info("Todo created", extra={"todo_id": todo.id, "owner_id": owner_id})
        return todo

    async def get_todo(self, owner_id: str, todo_id: str) -> Todo:
        """Return a todo, enforcing that ``owner_id`` owns it."""
        todo = await self._repository.get(todo_id)
        if todo is None:
            raise NotFoundError("Todo not found.")
        if todo.owner_id != owner_id:
            raise ForbiddenError("You are not permitted to access this todo.")
        return todo

    async def update_todo(
        self,
        owner_id: str,
        todo_id: str,
        changes: Mapping[str, Any],
    ) -> Todo:
        """Apply a partial update.

        Only keys present in ``changes`` are touched. ``attachment_key`` set
        to ``None`` clears the attachment, which is not the same as leaving
        the key out. The caller must own the todo before the payload itself
        is checked.
        """
        todo = await self.get_todo(owner_id, todo_id)
        if not changes:
            raise ValidationError("At least one field must be provided for update.")
        unknown = sorted(set(changes) - UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError("Unsupported fields in update.", details={"fields": unknown})

        updates: dict[str, Any] = {}
        if "title" in changes:
            updates["title"] = _normalise_title(changes["title"])
        if "completed" in changes:
            if not isinstance(changes["completed"], bool):
                raise ValidationError("Completed must be a boolean.")
            updates["completed"] = changes["completed"]
        if "attachment_key" in changes:
            updates["attachment_key"] = _normalise_attachment_key(changes["attachment_key"])

        previous_key = todo.attachment_key
        new_key = updates.get("attachment_key", previous_key)
        if new_key != previous_key:
            await self._ensure_attachment_free(new_key)

        for field_name, value in updates.items():
            setattr(todo, field_name, value)
        todo.updated_at = self._clock()

        try:
            await self._session.commit()
        except IntegrityError as exc:
            await self._session.rollback()
            if new_key is None or new_key == previous_key:
                raise
            raise _attachment_in_use(new_key) from exc
        await self._repository.refresh(todo)

        if previous_key and previous_key != todo.attachment_key:
            await self._release(previous_key, todo_id=todo.id, reason="replaced")
        return todo

    async def delete_todo(self, owner_id: str, todo_id: str) -> None:
        """Delete a todo and release its attachment, if any."""
        todo = await self.get_todo(owner_id, todo_id)
        attachment_key = todo.attachment_key
        await self._repository.delete(todo)
        await self._session.commit()
        logger.info("Todo deleted", extra={"todo_id": todo_id, "owner_id": owner_id})

        if attachment_key:
            await self._release(attachment_key, todo_id=todo_id, reason="deleted")

    async def _ensure_attachment_free(self, attachment_key: str | None) -> None:
        """Reject a key that another todo already references."""
        if attachment_key is None:
            return
        holder = await self._repository.get_by_attachment_key(attachment_key)
        if holder is not None:
            raise _attachment_in_use(attachment_key)

    async def _release(self, attachment_key: str, *, todo_id: str, reason: str) -> None:
        released = await self._attachments.release(attachment_key)
        if not released:
            logger.warning(
                "Attachment release failed; stored object is orphaned.",
                extra={"attachment_key": attachment_key, "todo_id": todo_id, "reason": reason},
            )


__all__ = ["TodoService", "UPDATABLE_FIELDS"]
