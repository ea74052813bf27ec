"""OAuth redirect relay."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from ...deps import DatabaseSessionDependency, IdentityVerifierDependency
from ...errors import UnauthorizedError
from ...schemas import AuthCallbackResponse, UserPublic
from ...services import UserService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get(
    "/callback",
    response_model=AuthCallbackResponse,
    summary="Complete the OAuth login redirect",
)
async def complete_login(
    verifier: IdentityVerifierDependency,
    session: DatabaseSessionDependency,
    access_token: Annotated[str | None, Query()] = None,
    refresh_token: Annotated[str | None, Query()] = None,
) -> AuthCallbackResponse:
    """Verify the provider's access token and mirror the user locally.

    Any ``user`` blob the provider appends to the redirect is ignored; the
    profile always comes from the userinfo endpoint.
    """

    if not access_token or not access_token.strip():
        raise UnauthorizedError("Missing access token.")
    identity = await verifier.verify(access_token)
    user = await UserService(session).upsert(identity)
    return AuthCallbackResponse(
        access_token=access_token.strip(),
        refresh_token=refresh_token or None,
        user=UserPublic.model_validate(user),
    )
