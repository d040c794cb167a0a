"""
SiteChat Models Module

Pydantic models shared across the application.

Available Models:
    Project Models:
        - AssistantConfig: Persona and widget settings
        - DbConnection: Tenant database connection (decrypted)
        - Document: One ingestion of a source URL

    API Models:
        - ChatRequest / ChatResponse
        - IngestRequest / IngestResponse
        - IntrospectRequest / IntrospectResponse
        - AllowlistSaveRequest / AllowlistResponse
        - ConnectDbRequest, StatusResponse, ErrorResponse
"""

from sitechat.models.api import (
    AllowlistResponse,
    AllowlistSaveRequest,
    AssistantConfigUpdate,
    ChatRequest,
    ChatResponse,
    ColumnRef,
    ConnectDbRequest,
    ErrorResponse,
    HealthResponse,
    IngestRequest,
    IngestResponse,
    IntrospectRequest,
    IntrospectResponse,
    ProjectConfigResponse,
    StatusResponse,
)
from sitechat.models.project import AssistantConfig, DbConnection, Document

__all__ = [
    "AssistantConfig",
    "DbConnection",
    "Document",
    "AllowlistResponse",
    "AllowlistSaveRequest",
    "AssistantConfigUpdate",
    "ChatRequest",
    "ChatResponse",
    "ColumnRef",
    "ConnectDbRequest",
    "ErrorResponse",
    "HealthResponse",
    "IngestRequest",
    "IngestResponse",
    "IntrospectRequest",
    "IntrospectResponse",
    "ProjectConfigResponse",
    "StatusResponse",
]
