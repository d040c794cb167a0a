"""
PostgreSQL Connector

Async PostgreSQL connector using asyncpg. Opens a single connection per
operation rather than a pool, since tenant databases are reached only for
introspection and one tool query per chat turn.

Usage:
    async with PostgresConnector("postgresql://user:pw@host/db") as connector:
        result = await connector.execute(
            'SELECT "name" FROM "users" WHERE "age" = $1',
            params=[18],
        )
"""

import logging
import time
from typing import Any, List, Optional

import asyncpg

from sitechat.connectors.base import (
    BaseConnector,
    ConnectionError,
    QueryError,
    QueryResult,
)

logger = logging.getLogger(__name__)


class PostgresConnector(BaseConnector):
    """
    PostgreSQL database connector using asyncpg.

    Provides an async interface for one short-lived connection with
    parameterized query execution.
    """

    def __init__(self, database_url: str, timeout: int = 30, **kwargs):
        super().__init__(database_url, timeout=timeout, **kwargs)
        self._conn: asyncpg.Connection | None = None

    async def connect(self) -> None:
        """
        Open a connection to PostgreSQL.

        Raises:
            ConnectionError: If connection fails
        """
        if self._connected and self._conn is not None:
            logger.debug("Already connected, skipping connection")
            return

        try:
            self._conn = await asyncpg.connect(
                dsn=_normalize_dsn(self.database_url),
                timeout=self.timeout,
                command_timeout=self.timeout,
                **self.kwargs,
            )
            self._connected = True
            logger.debug("Opened PostgreSQL connection")

        except (asyncpg.PostgresError, OSError, TimeoutError) as e:
            logger.warning(f"PostgreSQL connection failed: {type(e).__name__}")
            raise ConnectionError(f"Failed to connect to PostgreSQL: {e}") from e
        except Exception as e:
            logger.warning(f"Unexpected error during connection: {type(e).__name__}")
            raise ConnectionError(f"Connection error: {e}") from e

    async def execute(
        self,
        query: str,
        params: Optional[List[Any]] = None,
        timeout: Optional[int] = None,
    ) -> QueryResult:
        """
        Execute a SQL query.

        Args:
            query: SQL query (use $1, $2, ... for parameters)
            params: Query parameters
            timeout: Query timeout in seconds (overrides default)

        Returns:
            QueryResult with rows and metadata

        Raises:
            QueryError: If query fails
            ConnectionError: If not connected
        """
        if not self._connected or self._conn is None:
            raise ConnectionError("Not connected to database. Call connect() first.")

        start_time = time.perf_counter()
        query_timeout = timeout or self.timeout

        try:
            rows = await self._conn.fetch(query, *(params or []), timeout=query_timeout)
        except asyncpg.QueryCanceledError as e:
            logger.warning(f"Query timed out after {query_timeout}s: {query[:100]}")
            raise QueryError(f"Query timeout ({query_timeout}s)") from e
        except asyncpg.PostgresError as e:
            logger.warning(f"Query failed: {e}\nQuery: {query[:200]}")
            raise QueryError(str(e)) from e
        except TimeoutError as e:
            logger.warning(f"Query timed out after {query_timeout}s: {query[:100]}")
            raise QueryError(f"Query timeout ({query_timeout}s)") from e

        result_rows = [dict(row) for row in rows]
        columns = list(rows[0].keys()) if rows else []
        execution_time_ms = (time.perf_counter() - start_time) * 1000

        logger.debug(
            f"Query executed in {execution_time_ms:.2f}ms, returned {len(result_rows)} rows"
        )

        return QueryResult(
            rows=result_rows,
            row_count=len(result_rows),
            columns=columns,
            execution_time_ms=execution_time_ms,
        )

    async def close(self) -> None:
        """Close the connection."""
        if self._conn is not None:
            try:
                await self._conn.close()
            finally:
                self._conn = None
                self._connected = False
                logger.debug("Closed PostgreSQL connection")


def _normalize_dsn(database_url: str) -> str:
    return database_url.replace("postgresql+asyncpg://", "postgresql://")
