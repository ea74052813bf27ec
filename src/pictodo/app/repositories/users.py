"""Repository for interacting with user persistence models."""

from __future__ import annotations

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User
from .base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Concrete repository encapsulating ``User`` persistence operations."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session, User)

    async def get_by_external_id(self, external_id: str) -> User | None:
        """Retrieve the user mirrored from the given identity provider id."""
        result = await self.session.execute(select(User).where(User.external_id == external_id))
        return result.scalar_one_or_none()
