"""Router registrations for the Pictodo API."""

from __future__ import annotations

from fastapi import APIRouter

from .auth import router as auth_router
from .health import router as health_router
from .todos import router as todos_router
from .uploads import router as uploads_router
from .users import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router)
api_router.include_router(todos_router)
api_router.include_router(uploads_router)
api_router.include_router(users_router)

__all__ = [
    "api_router",
    "auth_router",
    "health_router",
    "todos_router",
    "uploads_router",
    "users_router",
]
