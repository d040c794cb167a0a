"""
Tests for PostgresConnector.

asyncpg.connect is patched; rows are plain dicts standing in for Records.
"""

from unittest.mock import AsyncMock, patch

import asyncpg
import pytest

from sitechat.connectors import ConnectionError, PostgresConnector, QueryError


@pytest.fixture
def conn():
    connection = AsyncMock()
    connection.fetch = AsyncMock(return_value=[{"id": 1, "name": "Alice"}])
    return connection


class TestConnect:
    """Connection handling."""

    @pytest.mark.asyncio
    async def test_normalizes_dsn_and_applies_timeout(self, conn):
        with patch(
            "sitechat.connectors.postgres.asyncpg.connect", new=AsyncMock(return_value=conn)
        ) as mock_connect:
            connector = PostgresConnector("postgresql+asyncpg://u:p@db/app", timeout=5)
            await connector.connect()

        kwargs = mock_connect.await_args.kwargs
        assert kwargs["dsn"] == "postgresql://u:p@db/app"
        assert kwargs["timeout"] == 5
        assert kwargs["command_timeout"] == 5
        assert connector.is_connected

    @pytest.mark.asyncio
    async def test_unreachable_host(self):
        with patch(
            "sitechat.connectors.postgres.asyncpg.connect",
            new=AsyncMock(side_effect=OSError("Connection refused")),
        ):
            with pytest.raises(ConnectionError):
                await PostgresConnector("postgresql://u:p@nowhere/app").connect()

    @pytest.mark.asyncio
    async def test_execute_requires_connection(self):
        with pytest.raises(ConnectionError):
            await PostgresConnector("postgresql://u:p@db/app").execute("SELECT 1")

    def test_repr_hides_credentials(self):
        connector = PostgresConnector("postgresql://admin:hunter2@db/app")
        assert "hunter2" not in repr(connector)


class TestExecute:
    """Query execution."""

    @pytest.mark.asyncio
    async def test_binds_params(self, conn):
        with patch("sitechat.connectors.postgres.asyncpg.connect", new=AsyncMock(return_value=conn)):
            async with PostgresConnector("postgresql://u:p@db/app", timeout=7) as connector:
                result = await connector.execute('SELECT "name" FROM "users" WHERE "id" = $1', [1])

        conn.fetch.assert_awaited_once_with(
            'SELECT "name" FROM "users" WHERE "id" = $1', 1, timeout=7
        )
        assert result.rows == [{"id": 1, "name": "Alice"}]
        assert result.row_count == 1
        assert result.columns == ["id", "name"]

    @pytest.mark.asyncio
    async def test_closes_on_query_error(self, conn):
        """The connection is released even when the query fails."""
        conn.fetch.side_effect = asyncpg.UndefinedTableError('relation "users" does not exist')

        with patch("sitechat.connectors.postgres.asyncpg.connect", new=AsyncMock(return_value=conn)):
            connector = PostgresConnector("postgresql://u:p@db/app")
            with pytest.raises(QueryError):
                async with connector:
                    await connector.execute('SELECT "x" FROM "users"')

        conn.close.assert_awaited_once()
        assert not connector.is_connected

    @pytest.mark.asyncio
    async def test_timeout(self, conn):
        conn.fetch.side_effect = TimeoutError()

        with patch("sitechat.connectors.postgres.asyncpg.connect", new=AsyncMock(return_value=conn)):
            async with PostgresConnector("postgresql://u:p@db/app", timeout=3) as connector:
                with pytest.raises(QueryError, match="timeout"):
                    await connector.execute("SELECT 1")

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, conn):
        with patch("sitechat.connectors.postgres.asyncpg.connect", new=AsyncMock(return_value=conn)):
            connector = PostgresConnector("postgresql://u:p@db/app")
            await connector.connect()
            await connector.close()
            await connector.close()

        conn.close.assert_awaited_once()
