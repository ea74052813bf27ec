"""Pydantic schemas for public interfaces."""

from __future__ import annotations

from .auth import AuthCallbackResponse
from .system import ErrorResponse, HealthCheckResponse, RootResponse
from .todo import (
    DeleteResponse,
    TodoCreate,
    TodoListResponse,
    TodoRead,
    TodoResponse,
    TodoUpdate,
)
from .upload import (
    UploadCompleteRequest,
    UploadCompleteResponse,
    UploadTokenRequest,
    UploadTokenResponse,
)
from .user import UserPublic, UserResponse

__all__ = [
    "AuthCallbackResponse",
    "DeleteResponse",
    "ErrorResponse",
    "HealthCheckResponse",
    "RootResponse",
    "TodoCreate",
    "TodoListResponse",
    "TodoRead",
    "TodoResponse",
    "TodoUpdate",
    "UploadCompleteRequest",
    "UploadCompleteResponse",
    "UploadTokenRequest",
    "UploadTokenResponse",
    "UserPublic",
    "UserResponse",
]
