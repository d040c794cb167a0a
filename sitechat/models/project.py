"""
Project Models

Per-tenant records held in the system database: the assistant
configuration produced by the setup wizard, the tenant's database
connection, and ingested documents.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, SecretStr


class AssistantConfig(BaseModel):
    """Persona and widget settings for one project."""

    project_id: str = Field(..., min_length=1, description="Opaque project identifier")
    name: str | None = Field(None, description="Assistant display name")
    system_prompt: str = Field(
        default="You are a helpful assistant for this website.",
        min_length=1,
        description="Base persona prompt",
    )
    welcome_message: str | None = Field(None, description="First message shown by the widget")
    theme: dict[str, Any] = Field(default_factory=dict, description="Widget theme settings")
    mascot_url: str | None = Field(None, description="Widget icon URL")
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Last update timestamp"
    )


class DbConnection(BaseModel):
    """A tenant's database connection with its URI decrypted."""

    project_id: str = Field(..., min_length=1, description="Opaque project identifier")
    db_type: Literal["postgresql"] = Field(default="postgresql", description="Database engine")
    uri: SecretStr = Field(..., description="Decrypted connection URI")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp"
    )


class Document(BaseModel):
    """One successful ingestion of a source URL."""

    id: UUID = Field(default_factory=uuid4, description="Document identifier")
    project_id: str = Field(..., min_length=1, description="Opaque project identifier")
    source_url: str = Field(..., description="Ingested URL")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC), description="Creation timestamp"
    )
