"""Repository for interacting with todo persistence models."""

from __future__ import annotations

from sqlmodel import col, select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import Todo
from .base import BaseRepository


class TodoRepository(BaseRepository[Todo]):
    """Concrete repository encapsulating ``Todo`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, Todo)

    async def list_for_owner(self, owner_id: str) -> list[Todo]:
        """Return all todos of the given owner, newest first."""
        result = await self.session.execute(
            select(Todo)
            .where(Todo.owner_id == owner_id)
            .order_by(col(Todo.created_at).desc(), col(Todo.id).desc())
        )
        return list(result.scalars().all())

    async def get_by_attachment_key(self, attachment_key: str) -> Todo | None:
        """Return the todo currently referencing ``attachment_key``, if any."""
        result = await self.session.execute(select(Todo).where(Todo.attachment_key == attachment_key))
        return result.scalar_one_or_none()
