"""Entry point for the Pictodo FastAPI application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api.routers import api_router, health_router
from .core.config import Settings, get_settings
from .core.logging import configure_logging
from .core.middleware import CorrelationIdMiddleware
from .db import Database
from .deps import SettingsDependency
from .errors import register_exception_handlers
from .schemas.system import RootResponse
from .services import AttachmentGateway, IdentityVerifier

logger = logging.getLogger(__name__)


def _normalise_prefix(raw_prefix: str) -> str:
    router_prefix = raw_prefix.strip()
    if router_prefix and not router_prefix.startswith("/"):
        router_prefix = f"/{router_prefix}"
    router_prefix = router_prefix.rstrip("/")
    if router_prefix == "/":
        router_prefix = ""
    return router_prefix


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    identity_verifier: IdentityVerifier | None = None,
    attachment_gateway: AttachmentGateway | None = None,
) -> FastAPI:
    """Instantiate and configure the FastAPI application.

    Collaborators default to instances built from ``settings``; tests pass
    their own to run against an isolated store and fake upstream services.
    """

    settings = settings or get_settings()
    configure_logging(settings)

    database = database or Database.from_settings(settings)
    identity_verifier = identity_verifier or IdentityVerifier(
        settings.identity_userinfo_url,
        timeout=settings.outbound_timeout_seconds,
    )
    attachment_gateway = attachment_gateway or AttachmentGateway(
        settings.storage_base_url,
        settings.storage_api_key,
        timeout=settings.outbound_timeout_seconds,
        visibility=settings.storage_visibility,
    )
    if not attachment_gateway.configured:
        logger.warning("STORAGE_API_KEY is not set; upload endpoints will answer 503.")

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await database.create_all()
        try:
            yield
        finally:
            await identity_verifier.aclose()
            await attachment_gateway.aclose()
            await database.dispose()

    router_prefix = _normalise_prefix(settings.api_prefix)
    openapi_url = "/openapi.json" if not router_prefix else f"{router_prefix}/openapi.json"

    application = FastAPI(
        title=settings.project_name,
        version=settings.version,
        summary="Multi-user todo list with image attachments.",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url=openapi_url,
        lifespan=lifespan,
    )

    application.state.settings = settings
    application.state.database = database
    application.state.identity_verifier = identity_verifier
    application.state.attachment_gateway = attachment_gateway

    application.add_middleware(CorrelationIdMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    application.include_router(api_router, prefix=router_prefix)
    application.include_router(health_router)

    register_exception_handlers(application)

    @application.get("/", response_model=RootResponse, summary="Service metadata")
    async def read_root(app_settings: SettingsDependency) -> RootResponse:
        """Expose minimal service metadata for API clients."""

        return RootResponse(
            name=app_settings.project_name,
            environment=app_settings.environment,
            version=app_settings.version,
            api_prefix=router_prefix,
        )

    return application


def run() -> None:
    """Convenience entry point for the ``pictodo`` console script."""

    settings: Settings = get_settings()
    uvicorn.run(
        "pictodo.app.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=settings.reload,
        log_config=None,
    )
