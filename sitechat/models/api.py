"""
API Request/Response Models

Pydantic models for FastAPI endpoints. Field names follow the widget's
camelCase wire format through aliases.
"""

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(_WireModel):
    """Request model for the chat endpoint."""

    project_id: str = Field(..., alias="projectId", min_length=1, description="Project ID")
    text: str = Field(..., min_length=1, description="User message")
    credential: str | None = Field(
        None,
        validation_alias=AliasChoices("credential", "openAiKey"),
        description="Provider API key for this turn (required, checked by the orchestrator)",
    )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "projectId": "proj_123",
                "text": "Who founded the company?",
                "credential": "sk-...",
            }
        },
    )


class ChatResponse(BaseModel):
    """Response model for the chat endpoint."""

    answer: str = Field(..., description="Assistant answer")


class IngestRequest(_WireModel):
    """Request model for the ingest endpoint."""

    project_id: str = Field(..., alias="projectId", min_length=1, description="Project ID")
    url: str = Field(..., min_length=1, description="Page to ingest")
    credential: str | None = Field(
        None,
        validation_alias=AliasChoices("credential", "openAiKey"),
        description="Embedding provider API key",
    )


class IngestResponse(BaseModel):
    """Response model for the ingest endpoint."""

    status: str = Field(..., description="success or failed")
    chunks: int | None = Field(None, description="Chunks stored (on success)")
    reason: str | None = Field(None, description="Failure reason (on soft failure)")


class IntrospectRequest(_WireModel):
    """Request model for the introspect endpoint."""

    connection_uri: str | None = Field(
        None, alias="connectionUri", description="Database URI to introspect"
    )
    project_id: str | None = Field(
        None, alias="projectId", description="Introspect the project's stored connection instead"
    )


class ColumnRef(BaseModel):
    """One column of a base table."""

    table_name: str
    column_name: str


class IntrospectResponse(BaseModel):
    """Response model for the introspect endpoint."""

    columns: list[ColumnRef] = Field(default_factory=list)


class AllowlistSaveRequest(_WireModel):
    """Request model for the allowlist-save endpoint."""

    project_id: str = Field(..., alias="projectId", min_length=1, description="Project ID")
    table: str = Field(..., min_length=1, description="Table name")
    columns: list[str] = Field(default_factory=list, description="Columns the tool may read")


class AllowlistResponse(BaseModel):
    """Allowlisted columns of a project, keyed by table."""

    tables: dict[str, list[str]] = Field(default_factory=dict)


class ConnectDbRequest(_WireModel):
    """Request model for the connect-db endpoint."""

    project_id: str = Field(..., alias="projectId", min_length=1, description="Project ID")
    db_type: str = Field(default="postgres", alias="dbType", description="Database engine")
    uri: str = Field(..., min_length=1, description="Connection URI")


class StatusResponse(BaseModel):
    """Generic status payload."""

    status: str


class AssistantConfigUpdate(_WireModel):
    """Payload for creating or replacing a project's assistant configuration."""

    name: str | None = None
    system_prompt: str = Field(..., alias="systemPrompt", min_length=1)
    welcome_message: str | None = Field(None, alias="welcomeMessage")
    theme: dict[str, Any] = Field(default_factory=dict)
    mascot_url: str | None = Field(None, alias="mascotUrl")


class ProjectConfigResponse(BaseModel):
    """Widget bootstrap payload."""

    model_config = ConfigDict(populate_by_name=True)

    name: str | None = None
    icon_url: str | None = Field(None, alias="iconUrl")
    system_prompt: str = Field(..., alias="systemPrompt")
    welcome_message: str | None = Field(None, alias="welcomeMessage")
    theme: dict[str, Any] = Field(default_factory=dict)
    chat_endpoint: str = Field(..., alias="chatEndpoint")


class ErrorResponse(BaseModel):
    """Error payload returned with non-2xx responses."""

    error: str = Field(..., description="Machine-readable error code")
    detail: Any | None = Field(None, description="Optional extra information")


class HealthResponse(BaseModel):
    """Liveness payload."""

    status: str = Field(..., description="healthy")
    version: str = Field(..., description="Application version")
