"""FastAPI dependencies and the API error type."""

from __future__ import annotations

from typing import Any

from fastapi import Request, status

from sitechat.api.services import AppServices
from sitechat.config import Settings
from sitechat.ingestion import IngestionPipeline
from sitechat.llm import LLMProviderFactory
from sitechat.pipeline import ChatOrchestrator
from sitechat.storage import ProjectStore
from sitechat.tools import ColumnAllowlist, SchemaIntrospector


class ApiError(Exception):
    """Error rendered as ``{"error": code}`` with the given status."""

    def __init__(self, status_code: int, code: str, detail: Any | None = None):
        self.status_code = status_code
        self.code = code
        self.detail = detail
        super().__init__(code)


def get_services(request: Request) -> AppServices:
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise ApiError(status.HTTP_503_SERVICE_UNAVAILABLE, "service_unavailable")
    return services


def get_settings_dep(request: Request) -> Settings:
    return get_services(request).settings


def get_orchestrator(request: Request) -> ChatOrchestrator:
    return get_services(request).orchestrator


def get_ingestion(request: Request) -> IngestionPipeline:
    return get_services(request).ingestion


def get_project_store(request: Request) -> ProjectStore:
    return get_services(request).project_store


def get_allowlist(request: Request) -> ColumnAllowlist:
    return get_services(request).allowlist


def get_introspector(request: Request) -> SchemaIntrospector:
    return get_services(request).introspector


def get_provider_factory() -> type[LLMProviderFactory]:
    return LLMProviderFactory
