"""
Embedding Client

Thin wrapper over a provider's ``embed`` capability that pins the vector
dimension. No retries happen here; retry policy belongs to callers.
"""

from __future__ import annotations

import logging

from sitechat.llm.base import BaseLLMProvider

logger = logging.getLogger(__name__)


class EmbeddingDimensionError(ValueError):
    """A vector's length does not match the configured embedding dimension."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Embedding dimension mismatch: expected {expected}, got {actual}")


class EmbeddingClient:
    """
    Embeds text with one provider and model.

    Args:
        provider: Provider whose ``embed`` is called
        dimension: Expected vector length (None skips the check)
    """

    def __init__(self, provider: BaseLLMProvider, dimension: int | None = None) -> None:
        if not provider.embedding_model:
            raise ValueError(f"Provider {provider.provider_name} has no embedding model")
        self.provider = provider
        self.dimension = dimension

    @property
    def model(self) -> str:
        """Embedding model tag stored alongside every vector."""
        return self.provider.embedding_model or ""

    async def embed(self, text: str) -> list[float]:
        """
        Embed ``text``.

        Raises:
            EmbeddingProviderError: On a non-2xx upstream response
            EmbeddingDimensionError: If the vector has the wrong length
        """
        vector = await self.provider.embed(text)
        if self.dimension is not None and len(vector) != self.dimension:
            raise EmbeddingDimensionError(self.dimension, len(vector))
        return vector
