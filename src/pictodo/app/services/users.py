"""Service layer mirroring verified identities into local user records."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError
from sqlmodel.ext.asyncio.session import AsyncSession

from ..models import User, utcnow
from ..repositories import UserRepository
from .identity import Identity

logger = logging.getLogger(__name__)


class UserService:
    """High-level business operations for ``User`` entities."""

    def __init__(self, session: AsyncSession, *, clock: Callable[[], datetime] = utcnow) -> None:
        self._session = session
        self._repository = UserRepository(session)
        self._clock = clock

    @property
    def repository(self) -> UserRepository:
        """Expose the underlying repository for advanced scenarios."""
        return self._repository

    async def get(self, external_id: str) -> User | None:
        """Fetch a user by their identity provider id."""
        return await self._repository.get_by_external_id(external_id)

    async def upsert(self, identity: Identity) -> User:
        """Write or overwrite the user row for ``identity``.

        Profile fields always take the provider's latest values. Only
        ``updated_at`` moves when the same payload is seen again.
        """
        now = self._clock()
        user = await self._repository.get_by_external_id(identity.external_id)
        if user is None:
            user = User(external_id=identity.external_id, created_at=now)
            self._apply_identity(user, identity, now)
            try:
                await self._repository.add(user)
            except IntegrityError:
                # Lost the insert race to a concurrent first login.
                await self._session.rollback()
                user = await self._repository.get_by_external_id(identity.external_id)
                if user is None:
                    raise
                self._apply_identity(user, identity, now)
            else:
                logger.info("Registered user", extra={"external_id": identity.external_id})
        else:
            self._apply_identity(user, identity, now)

        await self._session.commit()
        await self._repository.refresh(user)
        return user

    @staticmethod
    def _apply_identity(user: User, identity: Identity, now: datetime) -> None:
        user.email = identity.email
        user.full_name = identity.full_name
        user.avatar = identity.avatar
        user.wallet_address = identity.wallet_address
        user.updated_at = now


__all__ = ["UserService"]
