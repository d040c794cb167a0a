"""
Unit Tests for Chat Endpoint

Tests /api/v1/chat with a mocked orchestrator, plus end-to-end turns through
a real orchestrator over mocked stores.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from sitechat.api.main import create_app
from sitechat.llm.base import LLMProviderError
from sitechat.llm.models import ToolCall
from sitechat.models.project import AssistantConfig, DbConnection
from sitechat.pipeline import ChatOrchestrator, CredentialRequired, ProjectNotConfigured


class TestChatEndpoint:
    """Request handling and error mapping."""

    def test_returns_answer(self, client, services):
        response = client.post(
            "/api/v1/chat",
            json={"projectId": "proj_1", "text": "Who founded the company?", "credential": "sk-test"},
        )

        assert response.status_code == 200
        assert response.json() == {"answer": "Hello!"}
        services.orchestrator.answer.assert_awaited_once_with(
            "proj_1", "Who founded the company?", "sk-test"
        )

    def test_accepts_legacy_key_field(self, client, services):
        response = client.post(
            "/api/v1/chat", json={"projectId": "proj_1", "text": "Hi", "openAiKey": "sk-legacy"}
        )

        assert response.status_code == 200
        assert services.orchestrator.answer.await_args.args[2] == "sk-legacy"

    def test_credential_required(self, client, services):
        services.orchestrator.answer.side_effect = CredentialRequired("missing")

        response = client.post("/api/v1/chat", json={"projectId": "proj_1", "text": "Hi"})

        assert response.status_code == 400
        assert response.json() == {"error": "credential_required"}

    def test_project_not_configured(self, client, services):
        services.orchestrator.answer.side_effect = ProjectNotConfigured("proj_missing")

        response = client.post(
            "/api/v1/chat", json={"projectId": "proj_missing", "text": "Hi", "credential": "sk"}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "project_not_configured"}

    def test_provider_error_is_opaque(self, client, services):
        """Upstream error bodies are logged, not returned."""
        services.orchestrator.answer.side_effect = LLMProviderError(
            "openai", "chat completion failed", 401, body="invalid api key sk-****"
        )

        response = client.post(
            "/api/v1/chat", json={"projectId": "proj_1", "text": "Hi", "credential": "sk"}
        )

        assert response.status_code == 500
        assert response.json() == {"error": "internal_server_error"}

    @pytest.mark.parametrize(
        "body",
        [
            {"text": "Hi", "credential": "sk"},
            {"projectId": "proj_1", "credential": "sk"},
            {"projectId": "proj_1", "text": "", "credential": "sk"},
        ],
    )
    def test_invalid_request(self, client, body):
        response = client.post("/api/v1/chat", json=body)

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"

    def test_unexpected_error(self, settings, services):
        services.orchestrator.answer.side_effect = RuntimeError("boom")
        app = create_app(settings=settings, services=services)

        with TestClient(app, raise_server_exceptions=False) as client:
            response = client.post(
                "/api/v1/chat", json={"projectId": "proj_1", "text": "Hi", "credential": "sk"}
            )

        assert response.status_code == 500
        assert response.json() == {"error": "internal_server_error"}


class TestChatTurns:
    """Full turns through a real orchestrator."""

    @pytest.fixture
    def wired(self, settings, services, mock_llm_provider):
        factory = MagicMock()
        factory.create_chat_provider.return_value = mock_llm_provider
        factory.create_embedding_provider.side_effect = ValueError("no embeddings in this test")

        services.project_store.get_assistant_config.return_value = AssistantConfig(
            project_id="proj_1", system_prompt="You are Acme's assistant."
        )
        services.project_store.get_db_connection.return_value = DbConnection(
            project_id="proj_1", uri=SecretStr("postgresql://u:p@db/app")
        )
        services.allowlist.get.return_value = {"users": ["email"]}
        services.executor.select_where = AsyncMock(return_value=[])
        services.orchestrator = ChatOrchestrator(
            project_store=services.project_store,
            allowlist=services.allowlist,
            knowledge_store=services.knowledge_store,
            executor=services.executor,
            llm_settings=settings.llm,
            provider_factory=factory,
        )
        with TestClient(create_app(settings=settings, services=services)) as client:
            yield client

    def test_unconfigured_project(self, wired, services, mock_llm_provider):
        services.project_store.get_assistant_config.return_value = None

        response = wired.post(
            "/api/v1/chat", json={"projectId": "proj_missing", "text": "Hello", "credential": "sk"}
        )

        assert response.status_code == 404
        assert response.json() == {"error": "project_not_configured"}
        mock_llm_provider.generate.assert_not_awaited()

    def test_table_outside_allowlist(self, wired, services, mock_llm_provider):
        mock_llm_provider.set_response(
            "", tool_calls=[ToolCall(name="select_from_table", arguments={"table": "secrets"})]
        )

        response = wired.post(
            "/api/v1/chat", json={"projectId": "proj_1", "text": "Show secrets", "credential": "sk"}
        )

        assert response.status_code == 200
        assert response.json() == {"answer": "Error: Table not allowed."}
        services.executor.select_where.assert_not_awaited()

    def test_missing_credential_reaches_nothing(self, wired, services, mock_llm_provider):
        response = wired.post("/api/v1/chat", json={"projectId": "proj_1", "text": "Hello"})

        assert response.status_code == 400
        assert response.json() == {"error": "credential_required"}
        services.project_store.get_assistant_config.assert_not_awaited()
