"""Embedding and vector retrieval."""

from sitechat.knowledge.embeddings import EmbeddingClient, EmbeddingDimensionError
from sitechat.knowledge.store import (
    KnowledgeStore,
    KnowledgeStoreError,
    collection_name_for,
    create_persistent_client,
)

__all__ = [
    "EmbeddingClient",
    "EmbeddingDimensionError",
    "KnowledgeStore",
    "KnowledgeStoreError",
    "collection_name_for",
    "create_persistent_client",
]
