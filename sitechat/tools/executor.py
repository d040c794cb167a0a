"""
Safe Query Executor

Runs the restricted ``SELECT`` behind the ``select_from_table`` tool.

Table and column names are quoted as identifiers. Filter values are only
ever passed as bound parameters, and filters combine with ``AND`` equality
only. Each filtered column is compared as text (``"col"::text = $n``) so
Postgres, not the driver, matches a model-supplied value against the
column's real type. A ``null`` filter value becomes ``IS NULL``. Callers must check table and columns against the project allowlist
first; this module does not consult it.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Mapping
from typing import Any

from sitechat.connectors import BaseConnector, create_connector

logger = logging.getLogger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a SQL identifier, doubling any embedded double quote."""
    return '"' + name.replace('"', '""') + '"'


def filter_value_as_text(value: Any) -> str:
    """Render a JSON filter value the way Postgres prints it as ``text``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def build_select(
    table: str,
    columns: list[str],
    where_equals: Mapping[str, Any] | None = None,
) -> tuple[str, list[Any]]:
    """
    Build the parameterized statement for ``select_where``.

    Returns:
        ``(sql, params)`` where every non-null filter value is a ``$n``
        placeholder bound as text
    """
    if not columns:
        raise ValueError("At least one column is required")

    sql = f"SELECT {', '.join(quote_identifier(c) for c in columns)} FROM {quote_identifier(table)}"
    params: list[Any] = []
    if where_equals:
        clauses = []
        for column, value in where_equals.items():
            if value is None:
                clauses.append(f"{quote_identifier(column)} IS NULL")
                continue
            params.append(filter_value_as_text(value))
            clauses.append(f"{quote_identifier(column)}::text = ${len(params)}")
        sql += " WHERE " + " AND ".join(clauses)
    return sql, params


class SafeQueryExecutor:
    """Executes allowlist-checked equality selects against a tenant database."""

    def __init__(
        self,
        connector_factory: Callable[..., BaseConnector] = create_connector,
        timeout: int = 30,
    ) -> None:
        self._connector_factory = connector_factory
        self.timeout = timeout

    async def select_where(
        self,
        connection_uri: str,
        table: str,
        columns: list[str],
        where_equals: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        """
        Select ``columns`` from ``table`` filtered by equality on ``where_equals``.

        Raises:
            ConnectorError: On connection or query failure
        """
        sql, params = build_select(table, columns, where_equals)
        logger.info(
            "Executing tool query",
            extra={"table": table, "columns": len(columns), "filters": len(where_equals or {})},
        )

        connector = self._connector_factory(database_url=connection_uri, timeout=self.timeout)
        async with connector:
            result = await connector.execute(sql, params)
        return result.rows
