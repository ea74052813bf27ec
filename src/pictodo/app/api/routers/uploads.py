"""Attachment upload endpoints proxied to the object storage service."""

from __future__ import annotations

from fastapi import APIRouter

from ...deps import AttachmentGatewayDependency, CurrentIdentityDependency
from ...schemas import (
    UploadCompleteRequest,
    UploadCompleteResponse,
    UploadTokenRequest,
    UploadTokenResponse,
)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/token", response_model=UploadTokenResponse, summary="Request a presigned upload target")
async def request_upload_token(
    payload: UploadTokenRequest,
    _identity: CurrentIdentityDependency,
    gateway: AttachmentGatewayDependency,
) -> UploadTokenResponse:
    credential = await gateway.request_upload_credential(
        payload.filename,
        payload.content_type,
        payload.size,
    )
    return UploadTokenResponse(upload_target=credential.upload_target, object_key=credential.object_key)


@router.post("/complete", response_model=UploadCompleteResponse, summary="Finalise an upload")
async def complete_upload(
    payload: UploadCompleteRequest,
    _identity: CurrentIdentityDependency,
    gateway: AttachmentGatewayDependency,
) -> UploadCompleteResponse:
    confirmation = await gateway.confirm_upload(payload.object_key)
    return UploadCompleteResponse(object_key=confirmation.object_key, url=confirmation.url)
