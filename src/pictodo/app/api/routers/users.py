"""User-centric API endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import CurrentUserDependency
from ...schemas import UserPublic, UserResponse

router = APIRouter(tags=["users"])


@router.get("/me", response_model=UserResponse, summary="Return the authenticated user")
async def read_current_user(current_user: CurrentUserDependency) -> UserResponse:
    return UserResponse(user=UserPublic.model_validate(current_user))
