"""
Ingestion Pipeline

fetch -> extract -> chunk -> create document -> embed -> store

A page whose extracted text is too short yields a soft ``failed`` result
and no document row. A chunk whose embedding fails is logged and skipped;
the reported count covers only chunks actually stored.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from sitechat.ingestion.chunker import TextChunker
from sitechat.ingestion.extractor import ContentExtractor
from sitechat.knowledge.embeddings import EmbeddingClient, EmbeddingDimensionError
from sitechat.knowledge.store import KnowledgeStore
from sitechat.llm.base import EmbeddingProviderError
from sitechat.storage.projects import ProjectStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestionResult:
    """Outcome of one ingestion call."""

    status: Literal["success", "failed"]
    chunks: int = 0
    reason: str | None = None
    document_id: str | None = None

    @classmethod
    def insufficient_content(cls) -> "IngestionResult":
        return cls(status="failed", reason="insufficient_content")


class IngestionPipeline:
    """
    Turns a URL into stored, searchable chunks for one project.

    Args:
        extractor: Page fetcher and text extractor
        chunker: Token chunker
        knowledge_store: Vector store for the chunks
        project_store: System database (document rows)
        concurrency: Parallel embedding calls (1 embeds sequentially)
    """

    def __init__(
        self,
        extractor: ContentExtractor,
        chunker: TextChunker,
        knowledge_store: KnowledgeStore,
        project_store: ProjectStore,
        concurrency: int = 1,
    ) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.extractor = extractor
        self.chunker = chunker
        self.knowledge_store = knowledge_store
        self.project_store = project_store
        self.concurrency = concurrency

    async def ingest(self, project_id: str, url: str, embedder: EmbeddingClient) -> IngestionResult:
        """
        Ingest ``url`` into ``project_id``'s knowledge.

        Raises:
            FetchError: If the page cannot be fetched
            KnowledgeStoreError: If the chunk batch cannot be stored
        """
        extraction = await self.extractor.extract(url)
        if extraction.insufficient:
            logger.info(
                f"Insufficient content at {url} ({len(extraction.text)} chars)",
                extra={"project_id": project_id},
            )
            return IngestionResult.insufficient_content()

        chunks = self.chunker.chunk(extraction.text)
        document = await self.project_store.create_document(project_id, url)
        document_id = str(document.id)

        embedded = await self._embed_all(chunks, embedder, document_id)
        stored = 0
        if embedded:
            stored = await self.knowledge_store.store(
                document_id,
                project_id,
                [(content, vector) for _, content, vector in embedded],
                source_url=url,
                chunk_indexes=[index for index, _, _ in embedded],
            )

        logger.info(
            f"Ingested {url}: {stored}/{len(chunks)} chunks stored",
            extra={"project_id": project_id, "document_id": document_id},
        )
        return IngestionResult(status="success", chunks=stored, document_id=document_id)

    async def _embed_all(
        self,
        chunks: list[str],
        embedder: EmbeddingClient,
        document_id: str,
    ) -> list[tuple[int, str, list[float]]]:
        semaphore = asyncio.Semaphore(self.concurrency)

        async def embed_one(index: int, content: str) -> tuple[int, str, list[float]] | None:
            async with semaphore:
                try:
                    return index, content, await embedder.embed(content)
                except (EmbeddingProviderError, EmbeddingDimensionError) as e:
                    logger.warning(
                        f"Skipping chunk {index} of document {document_id}: {e}",
                        extra={"document_id": document_id, "chunk_index": index},
                    )
                    return None

        if self.concurrency == 1:
            results = [await embed_one(index, content) for index, content in enumerate(chunks)]
        else:
            results = await asyncio.gather(
                *(embed_one(index, content) for index, content in enumerate(chunks))
            )
        return [result for result in results if result is not None]
