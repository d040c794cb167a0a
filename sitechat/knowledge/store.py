"""
Knowledge Store

Chroma-backed store of document chunks and their embeddings.

Each embedding model gets its own collection, so vectors of different
models (and dimensions) are never compared. Every chunk records its
``project_id``; searches always filter on it.

Usage:
    store = KnowledgeStore(client, embedding_model="text-embedding-3-small", dimension=1536)
    await store.initialize()

    await store.store(document_id, "proj_1", [("chunk text", vector)])
    contents = await store.search("proj_1", query_vector, threshold=0.7, limit=5)
"""

from __future__ import annotations

import asyncio
import logging
import re
from pathlib import Path
from typing import Any

import chromadb
from chromadb.config import Settings

from sitechat.knowledge.embeddings import EmbeddingDimensionError

logger = logging.getLogger(__name__)

_NAME_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]+")


class KnowledgeStoreError(Exception):
    """Raised when vector store operations fail."""

    pass


def collection_name_for(prefix: str, embedding_model: str) -> str:
    """Collection name for ``embedding_model`` (Chroma allows at most 63 chars)."""
    slug = _NAME_UNSAFE.sub("-", embedding_model).strip("-_").lower() or "default"
    return f"{prefix}_{slug}"[:63].rstrip("-_")


def create_persistent_client(persist_dir: str | Path) -> chromadb.ClientAPI:
    """Build an on-disk Chroma client."""
    path = Path(persist_dir)
    path.mkdir(parents=True, exist_ok=True)
    return chromadb.PersistentClient(
        path=str(path),
        settings=Settings(anonymized_telemetry=False),
    )


class KnowledgeStore:
    """
    Vector store for document chunks.

    Args:
        client: Chroma client (persistent in production, ephemeral in tests)
        embedding_model: Active embedding model tag
        dimension: Expected vector length (None skips the check)
        collection_prefix: Collection name prefix
    """

    def __init__(
        self,
        client: chromadb.ClientAPI,
        embedding_model: str,
        dimension: int | None = None,
        collection_prefix: str = "sitechat_chunks",
    ) -> None:
        self.client = client
        self.embedding_model = embedding_model
        self.dimension = dimension
        self.collection_name = collection_name_for(collection_prefix, embedding_model)
        self.collection: chromadb.Collection | None = None

    async def initialize(self) -> None:
        """
        Get or create the collection for the active embedding model.

        Raises:
            KnowledgeStoreError: If initialization fails
        """
        try:
            self.collection = await asyncio.to_thread(
                self.client.get_or_create_collection,
                name=self.collection_name,
                metadata={"hnsw:space": "cosine", "embedding_model": self.embedding_model},
                embedding_function=None,
            )
        except Exception as e:
            logger.error(f"Failed to initialize KnowledgeStore: {e}")
            raise KnowledgeStoreError(f"Initialization failed: {e}") from e

        logger.info(
            f"Knowledge collection '{self.collection_name}' ready",
            extra={"embedding_model": self.embedding_model},
        )

    def _ensure_collection(self) -> chromadb.Collection:
        if self.collection is None:
            raise KnowledgeStoreError("KnowledgeStore not initialized. Call initialize() first.")
        return self.collection

    async def store(
        self,
        document_id: str,
        project_id: str,
        chunks: list[tuple[str, list[float]]],
        source_url: str | None = None,
        chunk_indexes: list[int] | None = None,
    ) -> int:
        """
        Insert a batch of chunks for one document.

        Args:
            document_id: Owning document
            project_id: Owning project
            chunks: ``(content, embedding)`` pairs
            source_url: Page the chunks came from
            chunk_indexes: Position of each chunk within the document
                (defaults to 0..n-1)

        Returns:
            Number of chunks stored

        Raises:
            EmbeddingDimensionError: If a vector has the wrong length
            KnowledgeStoreError: If the insert fails (nothing from the batch is reported stored)
        """
        collection = self._ensure_collection()
        if not chunks:
            return 0

        indexes = chunk_indexes if chunk_indexes is not None else list(range(len(chunks)))
        if len(indexes) != len(chunks):
            raise ValueError("chunk_indexes must match chunks")

        if self.dimension is not None:
            for _, embedding in chunks:
                if len(embedding) != self.dimension:
                    raise EmbeddingDimensionError(self.dimension, len(embedding))

        metadatas: list[dict[str, Any]] = []
        for index in indexes:
            metadata: dict[str, Any] = {
                "project_id": project_id,
                "document_id": document_id,
                "embedding_model": self.embedding_model,
                "chunk_index": index,
            }
            if source_url:
                metadata["source_url"] = source_url
            metadatas.append(metadata)

        try:
            await asyncio.to_thread(
                collection.add,
                ids=[f"{document_id}:{index}" for index in indexes],
                documents=[content for content, _ in chunks],
                embeddings=[list(embedding) for _, embedding in chunks],
                metadatas=metadatas,
            )
        except Exception as e:
            logger.error(f"Failed to store chunks for document {document_id}: {e}")
            raise KnowledgeStoreError(f"Failed to store chunks: {e}") from e

        logger.info(
            f"Stored {len(chunks)} chunks",
            extra={"project_id": project_id, "document_id": document_id},
        )
        return len(chunks)

    async def search(
        self,
        project_id: str,
        query_embedding: list[float],
        threshold: float = 0.7,
        limit: int = 5,
    ) -> list[str]:
        """
        Return up to ``limit`` chunk contents of ``project_id`` whose cosine
        similarity to ``query_embedding`` exceeds ``threshold``, most similar first.

        An empty list means nothing cleared the threshold.

        Raises:
            EmbeddingDimensionError: If the query vector has the wrong length
            KnowledgeStoreError: If the query fails
        """
        collection = self._ensure_collection()
        if limit <= 0:
            return []
        if self.dimension is not None and len(query_embedding) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(query_embedding))

        try:
            if await asyncio.to_thread(collection.count) == 0:
                return []
            results = await asyncio.to_thread(
                collection.query,
                query_embeddings=[list(query_embedding)],
                n_results=limit,
                where={
                    "$and": [
                        {"project_id": project_id},
                        {"embedding_model": self.embedding_model},
                    ]
                },
                include=["documents", "distances"],
            )
        except Exception as e:
            logger.error(f"Search failed: {e}")
            raise KnowledgeStoreError(f"Search failed: {e}") from e

        documents = (results.get("documents") or [[]])[0] or []
        distances = (results.get("distances") or [[]])[0] or []

        matches: list[tuple[float, str]] = []
        for content, distance in zip(documents, distances):
            similarity = 1.0 - float(distance)
            if similarity > threshold:
                matches.append((similarity, content))
        matches.sort(key=lambda match: match[0], reverse=True)

        logger.debug(
            f"Search returned {len(matches)} chunks above {threshold}",
            extra={"project_id": project_id},
        )
        return [content for _, content in matches[:limit]]
