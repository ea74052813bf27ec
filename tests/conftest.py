from __future__ import annotations

import json
from collections.abc import AsyncIterator, Iterable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from sqlmodel.ext.asyncio.session import AsyncSession

from pictodo.app.core.config import Settings
from pictodo.app.db import Database
from pictodo.app.main import create_app
from pictodo.app.services import AttachmentGateway, Identity, IdentityVerifier

USERINFO_URL = "https://identity.test/v2/oauth/userinfo"
STORAGE_URL = "https://storage.test"
STORAGE_API_KEY = "storage-test-key"

ALICE_TOKEN = "alice-token"
BOB_TOKEN = "bob-token"
SLOW_TOKEN = "slow-token"

ALICE_PROFILE = {
    "_id": "alice-0001",
    "email": "alice@example.com",
    "fullname": "Alice Example",
    "profile": "https://cdn.example.com/alice.png",
    "wallet_address": "0xa11ce",
}
BOB_PROFILE = {
    "sub": "bob-0002",
    "email": "bob@example.com",
    "name": "Bob Example",
}


class TickingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None, step: timedelta = timedelta(seconds=1)) -> None:
        self.current = start or datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        value = self.current
        self.current = self.current + self.step
        return value


class RecordingAttachmentGateway:
    """In-process stand-in recording every release request."""

    def __init__(self, failing_keys: Iterable[str] = ()) -> None:
        self.released: list[str] = []
        self.failing_keys = set(failing_keys)

    async def release(self, object_key: str) -> bool:
        self.released.append(object_key)
        return object_key not in self.failing_keys


class IdentityProviderStub:
    """Fake userinfo endpoint keyed by bearer token."""

    def __init__(self, profiles: dict[str, Any] | None = None) -> None:
        self.profiles = dict(profiles or {})
        self.calls = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        authorization = request.headers.get("Authorization", "")
        token = authorization.removeprefix("Bearer ").strip()
        if token == SLOW_TOKEN:
            raise httpx.ReadTimeout("userinfo timed out", request=request)
        profile = self.profiles.get(token)
        if profile is None:
            return httpx.Response(401, json={"error": "invalid_token"})
        return httpx.Response(200, json=profile)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


class StorageServiceStub:
    """Fake object storage API recording the calls it receives."""

    def __init__(self) -> None:
        self.deleted: list[str] = []
        self.upload_requests: list[dict[str, Any]] = []
        self.completed: list[str] = []
        self.api_keys: list[str | None] = []
        self.incomplete_keys: set[str] = set()
        self.fail_deletes = False
        self.fail_everything = False
        self._counter = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.api_keys.append(request.headers.get("x-api-key"))
        if self.fail_everything:
            return httpx.Response(502, json={"error": "bad gateway"})

        path = request.url.path
        if request.method == "POST" and path == "/api/storage/upload-token":
            body = json.loads(request.content)
            self.upload_requests.append(body)
            self._counter += 1
            object_key = f"uploads/{self._counter:04d}/{body['filename']}"
            return httpx.Response(
                200,
                json={
                    "data": {
                        "uploadUrl": f"https://bucket.storage.test/{object_key}?signature=abc",
                        "objectKey": object_key,
                    }
                },
            )
        if request.method == "POST" and path == "/api/storage/complete":
            object_key = json.loads(request.content)["objectId"]
            if object_key in self.incomplete_keys:
                return httpx.Response(400, json={"error": "object not found"})
            self.completed.append(object_key)
            return httpx.Response(200, json={"publicUrl": f"https://cdn.storage.test/{object_key}"})
        if request.method == "DELETE" and path == "/api/storage/objects":
            object_key = request.url.params["key"]
            self.deleted.append(object_key)
            if self.fail_deletes:
                return httpx.Response(500, json={"error": "boom"})
            return httpx.Response(200, json={"deleted": True})
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def alice_identity() -> Identity:
    return Identity(
        external_id="alice-0001",
        email="alice@example.com",
        full_name="Alice Example",
        avatar="https://cdn.example.com/alice.png",
        wallet_address="0xa11ce",
    )


def bob_identity() -> Identity:
    return Identity(external_id="bob-0002", email="bob@example.com", full_name="Bob Example")


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def attachments() -> RecordingAttachmentGateway:
    return RecordingAttachmentGateway()


@pytest.fixture
def identity_provider() -> IdentityProviderStub:
    return IdentityProviderStub({ALICE_TOKEN: {"user": ALICE_PROFILE}, BOB_TOKEN: BOB_PROFILE})


@pytest.fixture
def storage_service() -> StorageServiceStub:
    return StorageServiceStub()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        environment="test",
        identity_userinfo_url=USERINFO_URL,
        storage_base_url=STORAGE_URL,
        storage_api_key=STORAGE_API_KEY,
        database_url="sqlite+aiosqlite:///:memory:",
        database_path=None,
    )


@pytest_asyncio.fixture
async def database() -> AsyncIterator[Database]:
    database = Database("sqlite+aiosqlite:///:memory:")
    await database.create_all()
    try:
        yield database
    finally:
        await database.dispose()


@pytest_asyncio.fixture
async def session(database: Database) -> AsyncIterator[AsyncSession]:
    async with database.session_maker() as session:
        try:
            yield session
        finally:
            if session.in_transaction():
                await session.rollback()


@pytest_asyncio.fixture
async def identity_verifier(identity_provider: IdentityProviderStub) -> AsyncIterator[IdentityVerifier]:
    verifier = IdentityVerifier(USERINFO_URL, timeout=5.0, transport=identity_provider.transport())
    try:
        yield verifier
    finally:
        await verifier.aclose()


@pytest_asyncio.fixture
async def attachment_gateway(storage_service: StorageServiceStub) -> AsyncIterator[AttachmentGateway]:
    gateway = AttachmentGateway(
        STORAGE_URL,
        STORAGE_API_KEY,
        timeout=5.0,
        transport=storage_service.transport(),
    )
    try:
        yield gateway
    finally:
        await gateway.aclose()


@pytest.fixture
def app(
    settings: Settings,
    database: Database,
    identity_verifier: IdentityVerifier,
    attachment_gateway: AttachmentGateway,
) -> FastAPI:
    return create_app(
        settings,
        database=database,
        identity_verifier=identity_verifier,
        attachment_gateway=attachment_gateway,
    )


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[httpx.AsyncClient]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
