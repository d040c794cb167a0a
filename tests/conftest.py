"""
Pytest configuration and shared fixtures.

This module provides fixtures and configuration used across all tests.
"""

import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_addoption(parser):
    """Add custom command line options."""
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires API keys and external services)",
    )


def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless explicitly enabled."""
    if config.getoption("--run-integration"):
        return
    skip_integration = pytest.mark.skip(
        reason="Integration tests disabled (use --run-integration to enable)."
    )
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


# ============================================================================
# Logging Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def configure_test_logging(caplog):
    """
    Configure logging for tests.

    Sets up log capture and configures log levels.
    This fixture runs automatically for all tests.
    """
    caplog.set_level(logging.DEBUG)
    yield


@pytest.fixture
def disable_logging():
    """Disable logging for tests that generate excessive logs."""
    logging.disable(logging.CRITICAL)
    yield
    logging.disable(logging.NOTSET)


# ============================================================================
# Environment and Configuration
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch):
    """
    Keep settings independent of the developer's environment.

    Clears the settings cache before and after each test and stops the
    repository .env file from overriding test values.
    """
    from sitechat.config import clear_settings_cache

    monkeypatch.setenv("SITECHAT_ENV_SOURCE", "env")
    clear_settings_cache()
    yield
    clear_settings_cache()


# ============================================================================
# Fakes
# ============================================================================


class CharEncoding:
    """Tokenizer stand-in: one token per character."""

    def encode(self, text: str) -> list[int]:
        return [ord(ch) for ch in text]

    def decode(self, tokens: list[int]) -> str:
        return "".join(chr(t) for t in tokens)


@pytest.fixture
def char_encoding() -> CharEncoding:
    return CharEncoding()


@pytest.fixture
def mock_llm_provider():
    """
    Mock chat provider.

    Usage:
        def test_something(mock_llm_provider):
            mock_llm_provider.set_response("test response")
    """
    from sitechat.llm.models import LLMResponse, LLMUsage

    class MockLLMProvider:
        provider_name = "mock"
        embedding_model = "mock-embed"

        def __init__(self):
            self.generate = AsyncMock()
            self.embed = AsyncMock(return_value=[1.0, 0.0, 0.0])

        def set_response(self, response: str, tool_calls=None):
            """Set the response that generate() will return."""
            self.generate.return_value = LLMResponse(
                content=response,
                tool_calls=tool_calls or [],
                model="mock-model",
                usage=LLMUsage(prompt_tokens=1, completion_tokens=1, total_tokens=2),
                finish_reason="tool_calls" if tool_calls else "stop",
                provider="mock",
            )

    return MockLLMProvider()


def build_pool():
    """
    Mock asyncpg pool whose ``acquire()`` and ``transaction()`` are async
    context managers.

    Returns:
        ``(pool, conn)``
    """
    pool = AsyncMock()
    pool.fetch = AsyncMock(return_value=[])
    pool.fetchrow = AsyncMock(return_value=None)
    pool.execute = AsyncMock(return_value="INSERT 0 1")

    conn = AsyncMock()
    conn_context = AsyncMock()
    conn_context.__aenter__.return_value = conn
    conn_context.__aexit__.return_value = None
    pool.acquire = MagicMock(return_value=conn_context)

    tx_context = AsyncMock()
    tx_context.__aenter__.return_value = None
    tx_context.__aexit__.return_value = None
    conn.transaction = MagicMock(return_value=tx_context)
    return pool, conn


@pytest.fixture
def mock_pool():
    return build_pool()


@pytest.fixture
def mock_connector():
    """
    Mock tenant database connector usable as an async context manager.

    Usage:
        def test_query(mock_connector):
            mock_connector.execute.return_value = QueryResult(...)
    """
    connector = AsyncMock()
    connector.__aenter__.return_value = connector
    connector.__aexit__.return_value = False
    connector.execute = AsyncMock()
    return connector
