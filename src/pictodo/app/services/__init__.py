"""Domain service layer package."""

from __future__ import annotations

from .identity import Identity, IdentityVerifier
from .storage import AttachmentGateway, AttachmentReleaser, UploadConfirmation, UploadCredential
from .todos import TodoService
from .users import UserService

__all__ = [
    "AttachmentGateway",
    "AttachmentReleaser",
    "Identity",
    "IdentityVerifier",
    "TodoService",
    "UploadConfirmation",
    "UploadCredential",
    "UserService",
]
