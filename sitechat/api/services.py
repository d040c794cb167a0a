"""
Application Services

Builds every long-lived collaborator once per process and hands them to
the API through ``app.state``. Nothing here is reached through module
globals; tests construct their own ``AppServices`` with fakes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import asyncpg
import chromadb

from sitechat.config import Settings
from sitechat.ingestion import ContentExtractor, IngestionPipeline, TextChunker
from sitechat.knowledge import KnowledgeStore, create_persistent_client
from sitechat.pipeline import ChatOrchestrator
from sitechat.security import CredentialVault
from sitechat.storage import ProjectStore
from sitechat.tools import ColumnAllowlist, SafeQueryExecutor, SchemaIntrospector

logger = logging.getLogger(__name__)


@dataclass
class AppServices:
    """Process-scoped collaborators shared by all requests."""

    settings: Settings
    vault: CredentialVault
    project_store: ProjectStore
    allowlist: ColumnAllowlist
    knowledge_store: KnowledgeStore
    introspector: SchemaIntrospector
    executor: SafeQueryExecutor
    orchestrator: ChatOrchestrator
    ingestion: IngestionPipeline
    pool: asyncpg.Pool | None = None

    async def close(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None
            logger.info("System database pool closed")


def resolve_store_url(settings: Settings, vault: CredentialVault) -> str:
    """
    Return the system database URL, decrypting it when only the envelope is set.

    Raises:
        ValueError: If neither ``STORE_DATABASE_URL`` nor
            ``STORE_DATABASE_URL_ENCRYPTED`` is set
        VaultError: If the envelope cannot be decrypted
    """
    if settings.store.database_url:
        return settings.store.database_url
    if settings.store.database_url_encrypted:
        return vault.decrypt(settings.store.database_url_encrypted)
    raise ValueError("STORE_DATABASE_URL or STORE_DATABASE_URL_ENCRYPTED must be set.")


def assemble_services(
    settings: Settings,
    vault: CredentialVault,
    pool: asyncpg.Pool,
    chroma_client: chromadb.ClientAPI,
) -> AppServices:
    """Wire collaborators together (no I/O)."""
    project_store = ProjectStore(pool, vault)
    allowlist = ColumnAllowlist(pool)
    knowledge_store = KnowledgeStore(
        chroma_client,
        embedding_model=settings.llm.embedding_model,
        dimension=settings.llm.embedding_dimension,
        collection_prefix=settings.chroma.collection_prefix,
    )
    introspector = SchemaIntrospector(timeout=settings.llm.timeout)
    executor = SafeQueryExecutor(timeout=settings.llm.timeout)
    orchestrator = ChatOrchestrator(
        project_store=project_store,
        allowlist=allowlist,
        knowledge_store=knowledge_store,
        executor=executor,
        llm_settings=settings.llm,
        match_threshold=settings.rag.match_threshold,
        match_count=settings.rag.match_count,
    )
    ingestion = IngestionPipeline(
        extractor=ContentExtractor(
            timeout=settings.rag.fetch_timeout,
            user_agent=settings.rag.user_agent,
            min_chars=settings.rag.min_content_chars,
        ),
        chunker=TextChunker(
            max_tokens=settings.rag.chunk_size,
            overlap=settings.rag.chunk_overlap,
            encoding_name=settings.rag.tokenizer_encoding,
        ),
        knowledge_store=knowledge_store,
        project_store=project_store,
        concurrency=settings.rag.embed_concurrency,
    )
    return AppServices(
        settings=settings,
        vault=vault,
        project_store=project_store,
        allowlist=allowlist,
        knowledge_store=knowledge_store,
        introspector=introspector,
        executor=executor,
        orchestrator=orchestrator,
        ingestion=ingestion,
        pool=pool,
    )


async def build_services(settings: Settings) -> AppServices:
    """Open the system database pool and vector store, then wire everything."""
    vault = CredentialVault(settings.vault.master_secret)
    database_url = resolve_store_url(settings, vault)

    pool = await asyncpg.create_pool(
        dsn=database_url.replace("postgresql+asyncpg://", "postgresql://", 1),
        min_size=1,
        max_size=settings.store.pool_size,
    )
    try:
        services = assemble_services(
            settings, vault, pool, create_persistent_client(settings.chroma.persist_dir)
        )
        await services.project_store.initialize()
        await services.knowledge_store.initialize()
    except Exception:
        await pool.close()
        raise

    if not vault.is_configured:
        logger.warning("VAULT_MASTER_SECRET not set; database connections cannot be stored")
    return services
