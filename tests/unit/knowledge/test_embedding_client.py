"""Tests for EmbeddingClient."""

import pytest

from sitechat.knowledge.embeddings import EmbeddingClient, EmbeddingDimensionError
from sitechat.llm.base import EmbeddingProviderError


class TestEmbeddingClient:
    """Dimension pinning over a provider."""

    @pytest.mark.asyncio
    async def test_returns_provider_vector(self, mock_llm_provider):
        client = EmbeddingClient(mock_llm_provider, dimension=3)

        assert await client.embed("hello") == [1.0, 0.0, 0.0]
        assert client.model == "mock-embed"
        mock_llm_provider.embed.assert_awaited_once_with("hello")

    @pytest.mark.asyncio
    async def test_dimension_mismatch(self, mock_llm_provider):
        client = EmbeddingClient(mock_llm_provider, dimension=1536)

        with pytest.raises(EmbeddingDimensionError) as exc_info:
            await client.embed("hello")

        assert exc_info.value.expected == 1536
        assert exc_info.value.actual == 3

    @pytest.mark.asyncio
    async def test_provider_errors_propagate(self, mock_llm_provider):
        mock_llm_provider.embed.side_effect = EmbeddingProviderError("mock", "quota exceeded", 429)

        with pytest.raises(EmbeddingProviderError):
            await EmbeddingClient(mock_llm_provider).embed("hello")

    def test_provider_without_embedding_model(self, mock_llm_provider):
        mock_llm_provider.embedding_model = None

        with pytest.raises(ValueError):
            EmbeddingClient(mock_llm_provider)
