"""Schemas for attachment upload endpoints."""

from __future__ import annotations

from pydantic import AliasChoices, ConfigDict, Field

from .base import CamelModel


class UploadTokenRequest(CamelModel):
    """Metadata of the file the client is about to upload."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"filename": "receipt.jpg", "contentType": "image/jpeg", "size": 48213}
        }
    )

    filename: str | None = None
    content_type: str | None = None
    size: int | None = None


class UploadTokenResponse(CamelModel):
    """Presigned target for the upload and the key to attach afterwards."""

    upload_target: str
    object_key: str


class UploadCompleteRequest(CamelModel):
    """Identifies the upload to finalise."""

    object_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("objectKey", "objectId", "object_key"),
    )


class UploadCompleteResponse(CamelModel):
    """Result of a finalised upload."""

    object_key: str
    url: str | None = None


__all__ = [
    "UploadCompleteRequest",
    "UploadCompleteResponse",
    "UploadTokenRequest",
    "UploadTokenResponse",
]
