"""Application-level exception handling helpers."""

from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from http import HTTPStatus
from typing import Any, Mapping

from fastapi import FastAPI, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, request_id_bound
from .schemas.system import ErrorResponse

logger = logging.getLogger(__name__)


class ApplicationError(Exception):
    """Base class for domain-specific errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "application_error",
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.detail = message
        self.code = code
        self.status_code = status_code
        self.details = details
        self.headers = dict(headers) if headers else None


class UnauthorizedError(ApplicationError):
    """The caller presented no credential, or one that could not be verified."""

    def __init__(self, message: str = "Could not validate credentials.") -> None:
        super().__init__(
            message,
            code="unauthorized",
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(ApplicationError):
    """The caller is authenticated but does not own the resource."""

    def __init__(self, message: str = "Not enough permissions.", *, details: Any | None = None) -> None:
        super().__init__(
            message,
            code="forbidden",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details,
        )


class NotFoundError(ApplicationError):
    """Error representing missing resources."""

    def __init__(self, message: str = "Resource not found.", *, details: Any | None = None) -> None:
        super().__init__(
            message,
            code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
            details=details,
        )


class ValidationError(ApplicationError):
    """Error representing malformed input."""

    def __init__(self, message: str = "Validation failed.", *, details: Any | None = None) -> None:
        super().__init__(
            message,
            code="validation_error",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details,
        )


class DependencyUnavailableError(ApplicationError):
    """Base class for failures of an external collaborator."""

    def __init__(
        self,
        message: str,
        *,
        code: str,
        status_code: int = status.HTTP_503_SERVICE_UNAVAILABLE,
        details: Any | None = None,
    ) -> None:
        super().__init__(message, code=code, status_code=status_code, details=details)


class IdentityProviderUnavailableError(DependencyUnavailableError):
    """The identity provider did not answer within the outbound timeout."""

    def __init__(self, message: str = "Identity provider is unavailable.") -> None:
        super().__init__(message, code="identity_provider_unavailable")


class StorageUnavailableError(DependencyUnavailableError):
    """The object storage service is unreachable or misconfigured."""

    def __init__(self, message: str = "Storage service is unavailable.", *, details: Any | None = None) -> None:
        super().__init__(message, code="storage_unavailable", details=details)


class UploadIncompleteError(DependencyUnavailableError):
    """The object storage service reports the object was never written."""

    def __init__(self, message: str = "Upload has not been completed.", *, details: Any | None = None) -> None:
        super().__init__(message, code="upload_incomplete", details=details)


class ServerError(ApplicationError):
    """Error representing unexpected server failures."""

    def __init__(self, message: str = "Internal server error.", *, details: Any | None = None) -> None:
        super().__init__(
            message,
            code="server_error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details=details,
        )


_HTTP_STATUS_CODE_MAP: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
}


def _request_scope(request: Request) -> AbstractContextManager[str]:
    # Handlers run after the middleware has unbound the request id.
    return request_id_bound(getattr(request.state, "request_id", None))


def _log_http_failure(message: str, request: Request, *, code: str, status_code: int) -> None:
    log = logger.error if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning
    log(message, extra={"code": code, "status_code": status_code, "path": request.url.path})


def _normalize_details(raw: Any) -> Any | None:
    if raw is None:
        return None
    if isinstance(raw, list):
        return {"errors": raw}
    return raw


def _merge_details_with_request(request: Request, details: Any | None) -> Any | None:
    request_id = getattr(request.state, "request_id", None)
    if not request_id:
        return details
    if details is None:
        return {"request_id": request_id}
    if isinstance(details, dict):
        if "request_id" not in details:
            return {**details, "request_id": request_id}
        return details
    return {"request_id": request_id, "detail": details}


def _error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    payload = ErrorResponse(
        code=code,
        message=message,
        details=_merge_details_with_request(request, details),
    )
    response = JSONResponse(status_code=status_code, content=jsonable_encoder(payload))
    if headers:
        response.headers.update(headers)
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def _http_exception_details(
    status_code: int,
    detail: Any,
) -> tuple[str, Any | None]:
    if isinstance(detail, str):
        return detail, None
    try:
        status_phrase = HTTPStatus(status_code).phrase
    except ValueError:
        status_phrase = "Error"
    if detail is None:
        return status_phrase, None
    return status_phrase, _normalize_details(detail)


def register_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the provided FastAPI app."""

    @app.exception_handler(ApplicationError)
    async def _handle_application_error(
        request: Request,
        exc: ApplicationError,
    ) -> JSONResponse:
        with _request_scope(request):
            _log_http_failure("Application error encountered", request, code=exc.code, status_code=exc.status_code)
            return _error_response(
                request,
                status_code=exc.status_code,
                code=exc.code,
                message=exc.message,
                details=exc.details,
                headers=exc.headers,
            )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        with _request_scope(request):
            logger.warning("Request validation failed", extra={"errors": errors, "path": request.url.path})
            return _error_response(
                request,
                status_code=status.HTTP_400_BAD_REQUEST,
                code="validation_error",
                message="Request validation failed.",
                details={"errors": errors},
            )

    @app.exception_handler(SQLAlchemyError)
    async def _handle_database_error(
        request: Request,
        exc: SQLAlchemyError,
    ) -> JSONResponse:
        with _request_scope(request):
            logger.error("Record store error encountered.", exc_info=exc)
            return _error_response(
                request,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="internal_fault",
                message="Internal server error.",
            )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        code = _HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error")
        message, extra_details = _http_exception_details(exc.status_code, exc.detail)
        with _request_scope(request):
            _log_http_failure("HTTP exception raised", request, code=code, status_code=exc.status_code)
            return _error_response(
                request,
                status_code=exc.status_code,
                code=code,
                message=message,
                details=extra_details,
                headers=getattr(exc, "headers", None) or None,
            )

    @app.exception_handler(Exception)
    async def _handle_unhandled_exception(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        with _request_scope(request):
            logger.error("Unhandled application error.", exc_info=exc)
            return _error_response(
                request,
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                code="server_error",
                message="Internal server error.",
            )


__all__ = [
    "ApplicationError",
    "DependencyUnavailableError",
    "ForbiddenError",
    "IdentityProviderUnavailableError",
    "NotFoundError",
    "ServerError",
    "StorageUnavailableError",
    "UnauthorizedError",
    "UploadIncompleteError",
    "ValidationError",
    "register_exception_handlers",
]
