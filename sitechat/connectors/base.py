"""
Base Database Connector

Abstract base class for connectors to a tenant's own database. Provides a
consistent async interface for opening a connection, running parameterized
queries, and closing the connection again.

Tenant connections are short-lived: a connector is opened for a single
operation and closed on every exit path, so one tenant's unreachable
database never holds resources across a chat turn.

All connectors must implement:
- connect(): Open the connection
- execute(): Run a query with bound parameters and a timeout
- close(): Release the connection
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ============================================================================
# Data Models
# ============================================================================


class QueryResult(BaseModel):
    """Result from query execution."""

    rows: list[dict[str, Any]] = Field(..., description="Query result rows")
    row_count: int = Field(..., description="Number of rows returned")
    columns: list[str] = Field(..., description="Column names")
    execution_time_ms: float = Field(..., description="Query execution time in ms")


class ConnectorError(Exception):
    """Base exception for connector errors."""

    pass


class ConnectionError(ConnectorError):
    """Error establishing or managing database connection."""

    pass


class QueryError(ConnectorError):
    """Error executing database query."""

    pass


class SchemaError(ConnectorError):
    """Error introspecting database schema."""

    pass


# ============================================================================
# Base Connector
# ============================================================================


class BaseConnector(ABC):
    """
    Abstract base class for tenant database connectors.

    Usage:
        async with create_connector(database_url=uri) as connector:
            result = await connector.execute(
                'SELECT "email" FROM "users" WHERE "id" = $1', [123]
            )
            print(f"Found {result.row_count} rows")

    The async context manager guarantees ``close()`` runs even when the
    query raises.
    """

    def __init__(self, database_url: str, timeout: int = 30, **kwargs):
        """
        Initialize connector.

        Args:
            database_url: Connection URI of the tenant database
            timeout: Connect and query timeout in seconds (default: 30)
            **kwargs: Additional connector-specific parameters
        """
        self.database_url = database_url
        self.timeout = timeout
        self.kwargs = kwargs

        self._connected = False

    @abstractmethod
    async def connect(self) -> None:
        """
        Open the database connection.

        Raises:
            ConnectionError: If connection fails
        """
        pass

    @abstractmethod
    async def execute(
        self,
        query: str,
        params: list[Any] | None = None,
        timeout: int | None = None,
    ) -> QueryResult:
        """
        Execute a SQL query.

        Args:
            query: SQL query string (use $1, $2 for parameters)
            params: Query parameters (optional)
            timeout: Query timeout in seconds (overrides default)

        Returns:
            QueryResult with rows, columns, and metadata

        Raises:
            QueryError: If query execution fails
            ConnectionError: If not connected
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the database connection.

        Should be idempotent - safe to call multiple times.
        """
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected."""
        return self._connected

    async def __aenter__(self):
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()
        return False

    def __repr__(self) -> str:
        """String representation without credentials."""
        status = "connected" if self._connected else "disconnected"
        return f"<{self.__class__.__name__} ({status})>"
