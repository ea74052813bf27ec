"""Reusable FastAPI dependencies."""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel.ext.asyncio.session import AsyncSession

from .core.config import Settings
from .db import Database
from .errors import UnauthorizedError
from .models import User
from .services import AttachmentGateway, Identity, IdentityVerifier, TodoService, UserService

_bearer_scheme = HTTPBearer(auto_error=False, description="Access token issued by the identity provider.")


def get_app_settings(request: Request) -> Settings:
    """Return the settings the running application was built with."""

    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_identity_verifier(request: Request) -> IdentityVerifier:
    return request.app.state.identity_verifier


def get_attachment_gateway(request: Request) -> AttachmentGateway:
    return request.app.state.attachment_gateway


SettingsDependency = Annotated[Settings, Depends(get_app_settings)]
DatabaseDependency = Annotated[Database, Depends(get_database)]
IdentityVerifierDependency = Annotated[IdentityVerifier, Depends(get_identity_verifier)]
AttachmentGatewayDependency = Annotated[AttachmentGateway, Depends(get_attachment_gateway)]


async def get_db_session(database: DatabaseDependency) -> AsyncIterator[AsyncSession]:
    """FastAPI dependency that yields a database session."""

    async for session in database.session():
        yield session


DatabaseSessionDependency = Annotated[AsyncSession, Depends(get_db_session)]


async def get_current_identity(
    verifier: IdentityVerifierDependency,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
) -> Identity:
    """Verify the bearer token on every request; nothing is cached."""

    if credentials is None or not credentials.credentials.strip():
        raise UnauthorizedError("Missing bearer token.")
    return await verifier.verify(credentials.credentials)


CurrentIdentityDependency = Annotated[Identity, Depends(get_current_identity)]


async def get_current_user(
    identity: CurrentIdentityDependency,
    session: DatabaseSessionDependency,
) -> User:
    """Mirror the verified identity into the user table and return the row."""

    return await UserService(session).upsert(identity)


CurrentUserDependency = Annotated[User, Depends(get_current_user)]


def get_todo_service(
    session: DatabaseSessionDependency,
    attachments: AttachmentGatewayDependency,
) -> TodoService:
    return TodoService(session, attachments)


TodoServiceDependency = Annotated[TodoService, Depends(get_todo_service)]


__all__ = [
    "AttachmentGatewayDependency",
    "CurrentIdentityDependency",
    "CurrentUserDependency",
    "DatabaseDependency",
    "DatabaseSessionDependency",
    "IdentityVerifierDependency",
    "SettingsDependency",
    "TodoServiceDependency",
    "get_attachment_gateway",
    "get_current_identity",
    "get_current_user",
    "get_database",
    "get_db_session",
    "get_identity_verifier",
    "get_todo_service",
]
