"""
Schema Introspection

Lists every column of every base table in a tenant database's ``public``
schema. The connection is opened for the catalog query only and closed on
every exit path. Table data is never read.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from pydantic import BaseModel, Field

from sitechat.connectors import BaseConnector, ConnectorError, SchemaError, create_connector

logger = logging.getLogger(__name__)

_COLUMNS_QUERY = """
    SELECT c.table_name, c.column_name, c.data_type
    FROM information_schema.columns AS c
    JOIN information_schema.tables AS t
      ON t.table_schema = c.table_schema
     AND t.table_name = c.table_name
    WHERE c.table_schema = $1
      AND t.table_type = 'BASE TABLE'
    ORDER BY c.table_name, c.ordinal_position
"""


class SchemaColumn(BaseModel):
    """A single column of a base table."""

    table_name: str = Field(..., description="Table name")
    column_name: str = Field(..., description="Column name")
    data_type: str = Field(..., description="Column data type")


ConnectorFactory = Callable[..., BaseConnector]


class SchemaIntrospector:
    """Catalog reader for tenant databases."""

    def __init__(
        self,
        connector_factory: ConnectorFactory = create_connector,
        schema_name: str = "public",
        timeout: int = 30,
    ) -> None:
        self._connector_factory = connector_factory
        self.schema_name = schema_name
        self.timeout = timeout

    async def introspect(self, connection_uri: str) -> list[SchemaColumn]:
        """
        Return all columns of all base tables in the default schema.

        Args:
            connection_uri: Tenant database URI

        Returns:
            Columns ordered by table name, then column position

        Raises:
            ConnectionError: If the database cannot be reached
            SchemaError: If the catalog query fails
            ValueError: If the URI is not a supported database URL
        """
        connector = self._connector_factory(database_url=connection_uri, timeout=self.timeout)
        async with connector:
            try:
                result = await connector.execute(_COLUMNS_QUERY, [self.schema_name])
            except ConnectorError as e:
                raise SchemaError(f"Schema introspection failed: {e}") from e

        columns = [
            SchemaColumn(
                table_name=row["table_name"],
                column_name=row["column_name"],
                data_type=row["data_type"],
            )
            for row in result.rows
        ]
        logger.info(
            f"Introspected {len(columns)} columns",
            extra={"tables": len({c.table_name for c in columns})},
        )
        return columns


def group_by_table(columns: list[SchemaColumn]) -> dict[str, set[str]]:
    """Index an introspection snapshot as ``{table: {column, ...}}``."""
    tables: dict[str, set[str]] = {}
    for column in columns:
        tables.setdefault(column.table_name, set()).add(column.column_name)
    return tables
