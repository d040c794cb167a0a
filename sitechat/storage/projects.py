"""
Project Store

Per-project records in the system database (PostgreSQL via asyncpg):
assistant configurations, the encrypted tenant database connection, and
document rows. Connection URIs are sealed by the credential vault before
they are written; only the envelope string is ever persisted.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from uuid import uuid4

import asyncpg
from pydantic import SecretStr

from sitechat.models.project import AssistantConfig, DbConnection, Document
from sitechat.security import CredentialVault
from sitechat.storage.schema import SCHEMA_STATEMENTS

logger = logging.getLogger(__name__)


class ProjectStore:
    """Manage project records stored in the system database."""

    def __init__(self, pool: asyncpg.Pool, vault: CredentialVault) -> None:
        self._pool = pool
        self._vault = vault

    async def initialize(self) -> None:
        """Ensure the schema exists."""
        async with self._pool.acquire() as conn:
            for statement in SCHEMA_STATEMENTS:
                await conn.execute(statement)
        logger.info("System database schema ready")

    # ------------------------------------------------------------------
    # Assistant configuration
    # ------------------------------------------------------------------

    async def get_assistant_config(self, project_id: str) -> AssistantConfig | None:
        """Return the project's assistant configuration, or None if absent."""
        row = await self._pool.fetchrow(
            """
            SELECT project_id, name, system_prompt, welcome_message, theme, mascot_url, updated_at
            FROM assistant_configs
            WHERE project_id = $1
            """,
            project_id,
        )
        if row is None:
            return None
        return self._row_to_config(row)

    async def save_assistant_config(self, config: AssistantConfig) -> AssistantConfig:
        """Create or replace the project's assistant configuration."""
        updated_at = datetime.now(UTC)
        row = await self._pool.fetchrow(
            """
            INSERT INTO assistant_configs (
                project_id, name, system_prompt, welcome_message, theme, mascot_url, updated_at
            ) VALUES ($1, $2, $3, $4, $5::jsonb, $6, $7)
            ON CONFLICT (project_id) DO UPDATE SET
                name = EXCLUDED.name,
                system_prompt = EXCLUDED.system_prompt,
                welcome_message = EXCLUDED.welcome_message,
                theme = EXCLUDED.theme,
                mascot_url = EXCLUDED.mascot_url,
                updated_at = EXCLUDED.updated_at
            RETURNING project_id, name, system_prompt, welcome_message, theme, mascot_url, updated_at
            """,
            config.project_id,
            config.name,
            config.system_prompt,
            config.welcome_message,
            json.dumps(config.theme),
            config.mascot_url,
            updated_at,
        )
        logger.info("Saved assistant config", extra={"project_id": config.project_id})
        return self._row_to_config(row)

    # ------------------------------------------------------------------
    # Tenant database connection
    # ------------------------------------------------------------------

    async def get_db_connection(self, project_id: str) -> DbConnection | None:
        """
        Return the project's database connection with the URI decrypted.

        Raises:
            VaultNotConfigured: If the vault has no master secret
            MalformedEnvelope: If the stored envelope is not well-formed
            AuthenticationFailure: If the stored envelope fails authentication
        """
        row = await self._pool.fetchrow(
            """
            SELECT project_id, db_type, encrypted_uri, created_at
            FROM db_connections
            WHERE project_id = $1
            """,
            project_id,
        )
        if row is None:
            return None
        return DbConnection(
            project_id=row["project_id"],
            db_type=row["db_type"],
            uri=SecretStr(self._vault.decrypt(row["encrypted_uri"])),
            created_at=row["created_at"],
        )

    async def save_db_connection(
        self, project_id: str, uri: str, db_type: str = "postgresql"
    ) -> None:
        """Encrypt and store the project's connection, replacing any previous one."""
        encrypted_uri = self._vault.encrypt(uri)
        await self._pool.execute(
            """
            INSERT INTO db_connections (project_id, db_type, encrypted_uri, created_at)
            VALUES ($1, $2, $3, $4)
            ON CONFLICT (project_id) DO UPDATE SET
                db_type = EXCLUDED.db_type,
                encrypted_uri = EXCLUDED.encrypted_uri,
                created_at = EXCLUDED.created_at
            """,
            project_id,
            db_type,
            encrypted_uri,
            datetime.now(UTC),
        )
        logger.info("Saved database connection", extra={"project_id": project_id})

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def create_document(self, project_id: str, source_url: str) -> Document:
        """Insert a document row for one ingestion of ``source_url``."""
        document = Document(
            id=uuid4(),
            project_id=project_id,
            source_url=source_url,
            created_at=datetime.now(UTC),
        )
        await self._pool.execute(
            """
            INSERT INTO documents (id, project_id, source_url, created_at)
            VALUES ($1, $2, $3, $4)
            """,
            document.id,
            document.project_id,
            document.source_url,
            document.created_at,
        )
        return document

    @staticmethod
    def _row_to_config(row: asyncpg.Record) -> AssistantConfig:
        theme = row["theme"]
        if isinstance(theme, str):
            theme = json.loads(theme)
        return AssistantConfig(
            project_id=row["project_id"],
            name=row["name"],
            system_prompt=row["system_prompt"],
            welcome_message=row["welcome_message"],
            theme=theme or {},
            mascot_url=row["mascot_url"],
            updated_at=row["updated_at"],
        )
