"""Client for the external object storage service holding todo attachments."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Protocol

import httpx

from ..errors import StorageUnavailableError, UploadIncompleteError, ValidationError

logger = logging.getLogger(__name__)

_UPLOAD_TARGET_FIELDS = ("uploadUrl", "url", "uploadTarget", "presignedUrl")
_OBJECT_KEY_FIELDS = ("objectKey", "key", "objectId")
_PUBLIC_URL_FIELDS = ("publicUrl", "url")


class AttachmentReleaser(Protocol):
    """Anything able to release a stored attachment by key."""

    async def release(self, object_key: str) -> bool:  # pragma: no cover - interface definition
        """Delete the object; ``False`` when the delete could not be confirmed."""


@dataclass(slots=True, frozen=True)
class UploadCredential:
    """Where to PUT the file and the key it will be stored under."""

    upload_target: str
    object_key: str


@dataclass(slots=True, frozen=True)
class UploadConfirmation:
    """Outcome of a finalised upload."""

    object_key: str
    url: str | None = None


def _unwrap(payload: Any) -> Mapping[str, Any]:
    if isinstance(payload, Mapping) and isinstance(payload.get("data"), Mapping):
        return payload["data"]
    if isinstance(payload, Mapping):
        return payload
    return {}


def _first_text(payload: Mapping[str, Any], names: tuple[str, ...]) -> str | None:
    for name in names:
        value = payload.get(name)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


class AttachmentGateway:
    """Stateless proxy to the object storage service.

    Authenticates with the service API key; holds no record of the objects
    it hands out, so callers must release keys they stop referencing.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None,
        *,
        timeout: float = 10.0,
        visibility: str = "public",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._visibility = visibility
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self._api_key)

    def _headers(self) -> dict[str, str]:
        return {"x-api-key": self._api_key or ""}

    def _require_configured(self) -> None:
        if not self.configured:
            raise StorageUnavailableError("Storage not configured (missing storage API key).")

    async def request_upload_credential(
        self,
        filename: str | None,
        content_type: str | None,
        size: int | None,
    ) -> UploadCredential:
        """Ask the storage service for a presigned upload target."""
        if not filename or not filename.strip():
            raise ValidationError("Filename is required.")
        if size is None or isinstance(size, bool) or size <= 0:
            raise ValidationError("Size must be a positive number of bytes.")
        self._require_configured()

        try:
            response = await self._client.post(
                "/api/storage/upload-token",
                headers=self._headers(),
                json={
                    "filename": filename.strip(),
                    "contentType": content_type,
                    "size": size,
                    "visibility": self._visibility,
                },
            )
        except httpx.HTTPError as exc:
            logger.error("Upload token request failed.", extra={"reason": type(exc).__name__})
            raise StorageUnavailableError() from exc

        if not response.is_success:
            logger.error(
                "Storage service refused upload token request.",
                extra={"status_code": response.status_code},
            )
            raise StorageUnavailableError("Failed to get upload token.")

        data = _unwrap(self._json(response))
        upload_target = _first_text(data, _UPLOAD_TARGET_FIELDS)
        object_key = _first_text(data, _OBJECT_KEY_FIELDS)
        if upload_target is None or object_key is None:
            logger.error("Storage service returned an unexpected upload token payload.")
            raise StorageUnavailableError("Storage service returned an unexpected payload.")
        return UploadCredential(upload_target=upload_target, object_key=object_key)

    async def confirm_upload(self, object_key: str | None) -> UploadConfirmation:
        """Finalise a previously requested upload."""
        if not object_key or not object_key.strip():
            raise ValidationError("Object key is required.")
        object_key = object_key.strip()
        self._require_configured()

        try:
            response = await self._client.post(
                "/api/storage/complete",
                headers=self._headers(),
                json={"objectId": object_key},
            )
        except httpx.HTTPError as exc:
            logger.error("Upload completion request failed.", extra={"reason": type(exc).__name__})
            raise StorageUnavailableError() from exc

        if response.is_client_error:
            logger.warning(
                "Storage service reports upload incomplete.",
                extra={"status_code": response.status_code, "object_key": object_key},
            )
            raise UploadIncompleteError(details={"object_key": object_key})
        if not response.is_success:
            logger.error(
                "Storage service failed to complete upload.",
                extra={"status_code": response.status_code, "object_key": object_key},
            )
            raise StorageUnavailableError("Failed to complete upload.")

        data = _unwrap(self._json(response, required=False))
        return UploadConfirmation(object_key=object_key, url=_first_text(data, _PUBLIC_URL_FIELDS))

    async def release(self, object_key: str) -> bool:
        """Best-effort delete of a stored object; never raises for service faults."""
        if not self.configured:
            logger.warning("Storage not configured; cannot release attachment.", extra={"object_key": object_key})
            return False

        try:
            response = await self._client.delete(
                "/api/storage/objects",
                params={"key": object_key},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.error(
                "Error deleting file from storage.",
                extra={"object_key": object_key, "reason": type(exc).__name__},
            )
            return False

        if not response.is_success:
            logger.error(
                "Failed to delete file from storage.",
                extra={"object_key": object_key, "status_code": response.status_code},
            )
            return False
        return True

    @staticmethod
    def _json(response: httpx.Response, *, required: bool = True) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            if not required:
                return {}
            raise StorageUnavailableError("Storage service returned an unexpected payload.") from exc

    async def aclose(self) -> None:
        await self._client.aclose()


__all__ = [
    "AttachmentGateway",
    "AttachmentReleaser",
    "UploadConfirmation",
    "UploadCredential",
]
