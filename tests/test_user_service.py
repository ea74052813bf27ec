from __future__ import annotations

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from conftest import TickingClock, alice_identity
from pictodo.app.models import User
from pictodo.app.services import Identity, UserService

pytestmark = pytest.mark.asyncio


async def _count_users(session: AsyncSession) -> int:
    result = await session.execute(select(User))
    return len(result.scalars().all())


async def test_upsert_creates_user_from_identity(session: AsyncSession, clock: TickingClock) -> None:
    service = UserService(session, clock=clock)

    user = await service.upsert(alice_identity())

    assert user.id is not None
    assert user.external_id == "alice-0001"
    assert user.email == "alice@example.com"
    assert user.full_name == "Alice Example"
    assert user.avatar == "https://cdn.example.com/alice.png"
    assert user.wallet_address == "0xa11ce"
    assert user.created_at == user.updated_at


async def test_upsert_is_idempotent_and_moves_updated_at(
    session: AsyncSession,
    clock: TickingClock,
) -> None:
    service = UserService(session, clock=clock)

    first = await service.upsert(alice_identity())
    created_at = first.created_at
    first_updated = first.updated_at
    second = await service.upsert(alice_identity())

    assert await _count_users(session) == 1
    assert second.id == first.id
    assert second.created_at == created_at
    assert second.updated_at > first_updated


async def test_upsert_overwrites_profile_fields(session: AsyncSession, clock: TickingClock) -> None:
    service = UserService(session, clock=clock)
    await service.upsert(alice_identity())

    renamed = Identity(external_id="alice-0001", email="alice@new.example.com", full_name="Alice Renamed")
    user = await service.upsert(renamed)

    assert user.email == "alice@new.example.com"
    assert user.full_name == "Alice Renamed"
    assert user.avatar is None
    assert user.wallet_address is None


async def test_get_returns_none_for_unknown_user(session: AsyncSession) -> None:
    assert await UserService(session).get("missing") is None
