from __future__ import annotations

import httpx
import pytest

from conftest import ALICE_TOKEN, BOB_TOKEN, SLOW_TOKEN, USERINFO_URL, IdentityProviderStub
from pictodo.app.errors import IdentityProviderUnavailableError, UnauthorizedError
from pictodo.app.services import IdentityVerifier
from pictodo.app.services.identity import normalise_identity


def test_normalise_unwraps_user_envelope() -> None:
    identity = normalise_identity(
        {"user": {"_id": "u-1", "email": "a@example.com", "fullname": "A", "profile": "https://x/a.png"}}
    )

    assert identity.external_id == "u-1"
    assert identity.email == "a@example.com"
    assert identity.full_name == "A"
    assert identity.avatar == "https://x/a.png"


@pytest.mark.parametrize(
    "payload",
    [
        {"sub": "u-2", "name": "B"},
        {"id": "u-2", "full_name": "B"},
        {"user": {"sub": "u-2", "name": "B", "picture": None}},
    ],
)
def test_normalise_accepts_alternative_field_names(payload: dict) -> None:
    identity = normalise_identity(payload)

    assert identity.external_id == "u-2"
    assert identity.full_name == "B"
    assert identity.avatar is None


@pytest.mark.parametrize("payload", [{}, {"email": "x@example.com"}, {"_id": "  "}, [], "nope"])
def test_normalise_rejects_payload_without_id(payload: object) -> None:
    with pytest.raises(UnauthorizedError):
        normalise_identity(payload)


@pytest.mark.asyncio
async def test_verify_returns_identity_for_valid_token(identity_verifier: IdentityVerifier) -> None:
    alice = await identity_verifier.verify(ALICE_TOKEN)
    bob = await identity_verifier.verify(BOB_TOKEN)

    assert alice.external_id == "alice-0001"
    assert alice.wallet_address == "0xa11ce"
    assert bob.external_id == "bob-0002"
    assert bob.full_name == "Bob Example"


@pytest.mark.asyncio
async def test_verify_never_caches(
    identity_verifier: IdentityVerifier,
    identity_provider: IdentityProviderStub,
) -> None:
    await identity_verifier.verify(ALICE_TOKEN)
    await identity_verifier.verify(ALICE_TOKEN)

    assert identity_provider.calls == 2


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["", "   ", "unknown-token"])
async def test_verify_rejects_missing_or_unknown_token(
    identity_verifier: IdentityVerifier,
    token: str,
) -> None:
    with pytest.raises(UnauthorizedError):
        await identity_verifier.verify(token)


@pytest.mark.asyncio
async def test_verify_timeout_reports_provider_unavailable(identity_verifier: IdentityVerifier) -> None:
    with pytest.raises(IdentityProviderUnavailableError):
        await identity_verifier.verify(SLOW_TOKEN)


@pytest.mark.asyncio
async def test_verify_connection_failure_is_unauthorized() -> None:
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    verifier = IdentityVerifier(USERINFO_URL, transport=httpx.MockTransport(refuse))
    try:
        with pytest.raises(UnauthorizedError):
            await verifier.verify(ALICE_TOKEN)
    finally:
        await verifier.aclose()


@pytest.mark.asyncio
async def test_verify_non_json_payload_is_unauthorized() -> None:
    def garbage(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"<html>login</html>")

    verifier = IdentityVerifier(USERINFO_URL, transport=httpx.MockTransport(garbage))
    try:
        with pytest.raises(UnauthorizedError):
            await verifier.verify(ALICE_TOKEN)
    finally:
        await verifier.aclose()
