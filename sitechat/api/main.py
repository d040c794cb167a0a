"""
FastAPI Application

Main FastAPI application for SiteChat with:
- Lifespan management for the system database pool and vector store
- CORS middleware for the embedded widget
- Exception handlers mapping domain errors to ``{"error": code}`` bodies
- Chat, ingest, tool setup, project config and health endpoints

Usage:
    uvicorn sitechat.api.main:create_app --factory --port 8000
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from sitechat import __version__
from sitechat.api.deps import ApiError
from sitechat.api.routes import chat, health, ingest, project, tools
from sitechat.api.services import AppServices, build_services
from sitechat.config import Settings, get_settings
from sitechat.llm.base import LLMProviderError
from sitechat.pipeline import CredentialRequired, ProjectNotConfigured
from sitechat.security import AuthenticationFailure, MalformedEnvelope, VaultNotConfigured

logger = logging.getLogger(__name__)


def _error(status_code: int, code: str, detail=None) -> JSONResponse:
    content = {"error": code}
    if detail is not None:
        content["detail"] = detail
    return JSONResponse(status_code=status_code, content=content)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Lifespan context manager for startup and shutdown.

    Builds the application services unless they were supplied up front
    (tests inject their own).
    """
    owned: AppServices | None = None
    if getattr(app.state, "services", None) is None:
        logger.info("Starting SiteChat API server...")
        owned = await build_services(app.state.settings)
        app.state.services = owned
        logger.info("SiteChat API server started successfully")

    try:
        yield  # Application runs here
    finally:
        if owned is not None:
            logger.info("Shutting down SiteChat API server...")
            try:
                await owned.close()
            except Exception as e:
                logger.error(f"Error closing services: {e}")
            app.state.services = None


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to status codes and ``{"error": code}`` bodies."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return _error(exc.status_code, exc.code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        fields = [".".join(str(part) for part in err.get("loc", ())) for err in exc.errors()]
        return _error(status.HTTP_400_BAD_REQUEST, "invalid_request", {"fields": fields})

    @app.exception_handler(CredentialRequired)
    async def credential_required_handler(
        request: Request, exc: CredentialRequired
    ) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, "credential_required")

    @app.exception_handler(ProjectNotConfigured)
    async def project_not_configured_handler(
        request: Request, exc: ProjectNotConfigured
    ) -> JSONResponse:
        return _error(status.HTTP_404_NOT_FOUND, "project_not_configured")

    @app.exception_handler(VaultNotConfigured)
    async def vault_not_configured_handler(
        request: Request, exc: VaultNotConfigured
    ) -> JSONResponse:
        logger.error("Credential vault is not configured")
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, "vault_not_configured")

    @app.exception_handler(MalformedEnvelope)
    @app.exception_handler(AuthenticationFailure)
    async def integrity_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"Stored credential failed integrity check: {type(exc).__name__}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "credential_integrity_error")

    @app.exception_handler(LLMProviderError)
    async def provider_error_handler(request: Request, exc: LLMProviderError) -> JSONResponse:
        logger.error(
            f"Upstream provider error: {exc}",
            extra={"provider": exc.provider, "status_code": exc.status_code, "body": exc.body},
        )
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error")

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_server_error")


def create_app(
    settings: Settings | None = None,
    services: AppServices | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use (default: ``get_settings()``)
        services: Pre-built services; when given, the lifespan opens nothing

    Returns:
        Configured FastAPI app
    """
    settings = settings or (services.settings if services else get_settings())

    app = FastAPI(
        title=f"{settings.app_name} API",
        description="Retrieval- and tool-augmented site assistant",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.services = services

    # The widget is embedded on customer sites
    origins = settings.cors_origin_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials="*" not in origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    app.include_router(health.router, tags=["health"])
    app.include_router(health.router, prefix="/api/v1", tags=["health"])
    app.include_router(chat.router, prefix="/api/v1", tags=["chat"])
    app.include_router(ingest.router, prefix="/api/v1", tags=["ingest"])
    app.include_router(tools.router, prefix="/api/v1", tags=["tools"])
    app.include_router(project.router, prefix="/api/v1", tags=["project"])

    return app
