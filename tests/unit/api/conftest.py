"""Fixtures for API tests: an app wired to mocked services."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from sitechat.api.main import create_app
from sitechat.config import Settings


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def services(settings):
    """
    Stand-in for AppServices.

    Every collaborator is a mock whose async methods are AsyncMocks.
    """
    project_store = MagicMock()
    project_store.get_assistant_config = AsyncMock(return_value=None)
    project_store.save_assistant_config = AsyncMock()
    project_store.get_db_connection = AsyncMock(return_value=None)
    project_store.save_db_connection = AsyncMock()

    allowlist = MagicMock()
    allowlist.get = AsyncMock(return_value={})
    allowlist.save = AsyncMock()

    introspector = MagicMock()
    introspector.introspect = AsyncMock(return_value=[])

    orchestrator = MagicMock()
    orchestrator.answer = AsyncMock(return_value="Hello!")

    ingestion = MagicMock()
    ingestion.ingest = AsyncMock()

    return SimpleNamespace(
        settings=settings,
        project_store=project_store,
        allowlist=allowlist,
        introspector=introspector,
        orchestrator=orchestrator,
        ingestion=ingestion,
        knowledge_store=MagicMock(),
        executor=MagicMock(),
        close=AsyncMock(),
    )


@pytest.fixture
def client(settings, services):
    """Test client whose lifespan uses the injected services."""
    app = create_app(settings=settings, services=services)
    with TestClient(app) as test_client:
        yield test_client
