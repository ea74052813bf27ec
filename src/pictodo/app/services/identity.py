"""Bearer token verification against the external identity provider."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

import httpx

from ..errors import IdentityProviderUnavailableError, UnauthorizedError

logger = logging.getLogger(__name__)

_EXTERNAL_ID_FIELDS = ("_id", "sub", "id")
_FULL_NAME_FIELDS = ("fullname", "full_name", "name")
_AVATAR_FIELDS = ("profile", "avatar", "picture")


@dataclass(slots=True, frozen=True)
class Identity:
    """Caller identity as reported by the identity provider."""

    external_id: str
    email: str | None = None
    full_name: str | None = None
    avatar: str | None = None
    wallet_address: str | None = None
    claims: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)


def _first_text(payload: Mapping[str, Any], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = payload.get(name)
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def normalise_identity(payload: Any) -> Identity:
    """Map a provider payload onto :class:`Identity`.

    The provider answers either ``{"user": {...}}`` or the bare user object,
    and names its stable id ``_id``, ``sub`` or ``id`` depending on the
    deployment.
    """

    if isinstance(payload, Mapping) and isinstance(payload.get("user"), Mapping):
        payload = payload["user"]
    if not isinstance(payload, Mapping):
        raise UnauthorizedError()

    external_id = _first_text(payload, _EXTERNAL_ID_FIELDS)
    if external_id is None:
        raise UnauthorizedError()

    return Identity(
        external_id=external_id,
        email=_first_text(payload, ("email",)),
        full_name=_first_text(payload, _FULL_NAME_FIELDS),
        avatar=_first_text(payload, _AVATAR_FIELDS),
        wallet_address=_first_text(payload, ("wallet_address",)),
        claims=dict(payload),
    )


class IdentityVerifier:
    """Exchange bearer tokens for identities via the provider's userinfo endpoint.

    Every call re-verifies; tokens are never cached.
    """

    def __init__(
        self,
        userinfo_url: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._userinfo_url = userinfo_url
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def verify(self, token: str) -> Identity:
        """Return the identity behind ``token`` or raise ``UnauthorizedError``."""
        if not token or not token.strip():
            raise UnauthorizedError()

        try:
            response = await self._client.get(
                self._userinfo_url,
                headers={"Authorization": f"Bearer {token.strip()}"},
            )
        except httpx.TimeoutException as exc:
            logger.error("Identity provider timed out.", extra={"url": self._userinfo_url})
            raise IdentityProviderUnavailableError() from exc
        except httpx.HTTPError as exc:
            logger.warning(
                "Token verification failed.",
                extra={"reason": type(exc).__name__},
            )
            raise UnauthorizedError() from exc

        if not response.is_success:
            logger.info(
                "Identity provider rejected token.",
                extra={"status_code": response.status_code},
            )
            raise UnauthorizedError()

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Identity provider returned a non-JSON payload.")
            raise UnauthorizedError() from exc

        return normalise_identity(payload)

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = ["Identity", "IdentityVerifier", "normalise_identity"]
