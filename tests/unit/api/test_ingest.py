"""
Unit Tests for Ingest Endpoint
"""

from unittest.mock import MagicMock

import pytest

from sitechat.api.deps import get_provider_factory
from sitechat.ingestion import FetchError
from sitechat.ingestion.pipeline import IngestionResult


@pytest.fixture
def provider_factory(client, mock_llm_provider):
    factory = MagicMock()
    factory.create_embedding_provider.return_value = mock_llm_provider
    client.app.dependency_overrides[get_provider_factory] = lambda: factory
    yield factory
    client.app.dependency_overrides.clear()


class TestIngestEndpoint:
    """Test /api/v1/ingest."""

    def test_success(self, client, services, provider_factory):
        services.ingestion.ingest.return_value = IngestionResult(
            status="success", chunks=1, document_id="doc-1"
        )

        response = client.post(
            "/api/v1/ingest",
            json={"projectId": "proj_1", "url": "https://example.com/about", "credential": "sk"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "success", "chunks": 1}
        project_id, url, embedder = services.ingestion.ingest.await_args.args
        assert (project_id, url) == ("proj_1", "https://example.com/about")
        assert embedder.model == "mock-embed"
        provider_factory.create_embedding_provider.assert_called_once()

    def test_insufficient_content(self, client, services, provider_factory):
        services.ingestion.ingest.return_value = IngestionResult.insufficient_content()

        response = client.post(
            "/api/v1/ingest",
            json={"projectId": "proj_1", "url": "https://example.com/empty", "credential": "sk"},
        )

        assert response.status_code == 200
        assert response.json() == {"status": "failed", "reason": "insufficient_content"}

    def test_fetch_failure(self, client, services, provider_factory):
        services.ingestion.ingest.side_effect = FetchError(
            "https://example.com/missing", "HTTP 404", status_code=404
        )

        response = client.post(
            "/api/v1/ingest",
            json={"projectId": "proj_1", "url": "https://example.com/missing", "credential": "sk"},
        )

        assert response.status_code == 502
        assert response.json()["error"] == "fetch_failed"

    def test_missing_credential(self, client, services):
        """Without a deployment embedding key, the request credential is required."""
        response = client.post(
            "/api/v1/ingest", json={"projectId": "proj_1", "url": "https://example.com"}
        )

        assert response.status_code == 400
        assert response.json() == {"error": "credential_required"}
        services.ingestion.ingest.assert_not_awaited()
