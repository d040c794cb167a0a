"""
Column Allowlist

The explicit set of ``(table, column)`` pairs the ``select_from_table``
tool may read, per project. Anything absent is denied.

A table's entries are replaced as a whole: delete and insert run in one
transaction, so readers see either the old set or the new one. Saves for
the same ``(project, table)`` are serialized with an in-process lock and a
transaction-scoped advisory lock (for multiple workers). Other projects
and tables proceed in parallel.
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from collections.abc import Iterable, Mapping

import asyncpg

logger = logging.getLogger(__name__)


class AllowlistError(Exception):
    """Allowlist save rejected."""

    def __init__(self, code: str, message: str, detail: object | None = None):
        self.code = code
        self.detail = detail
        super().__init__(message)


class ColumnAllowlist:
    """Allowlist entries stored in the system database."""

    def __init__(self, pool: asyncpg.Pool) -> None:
        self._pool = pool
        # Entries vanish once no save holds or awaits the lock.
        self._locks: weakref.WeakValueDictionary[tuple[str, str], asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, project_id: str, table: str) -> asyncio.Lock:
        key = (project_id, table)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def save(
        self,
        project_id: str,
        table: str,
        columns: Iterable[str],
        known_columns: Mapping[str, set[str]] | None = None,
    ) -> None:
        """
        Replace the allowlisted columns of ``table`` for ``project_id``.

        Args:
            project_id: Project identifier
            table: Table name
            columns: Columns the tool may read (duplicates are ignored; an
                empty list removes the table from the allowlist)
            known_columns: Introspection snapshot ``{table: {columns}}``; when
                given, the table and every column must appear in it

        Raises:
            AllowlistError: If the table or a column is missing from the snapshot
        """
        wanted = list(dict.fromkeys(columns))

        if known_columns is not None:
            available = known_columns.get(table)
            if available is None:
                raise AllowlistError(
                    "unknown_columns", f"Unknown table: {table}", detail={"table": table}
                )
            unknown = [c for c in wanted if c not in available]
            if unknown:
                raise AllowlistError(
                    "unknown_columns",
                    f"Unknown columns for {table}: {', '.join(unknown)}",
                    detail={"table": table, "columns": unknown},
                )

        async with self._lock_for(project_id, table):
            async with self._pool.acquire() as conn:
                async with conn.transaction():
                    await conn.execute(
                        "SELECT pg_advisory_xact_lock(hashtext($1 || ':' || $2))",
                        project_id,
                        table,
                    )
                    await conn.execute(
                        "DELETE FROM allowlist_entries WHERE project_id = $1 AND table_name = $2",
                        project_id,
                        table,
                    )
                    if wanted:
                        await conn.executemany(
                            """
                            INSERT INTO allowlist_entries (project_id, table_name, column_name)
                            VALUES ($1, $2, $3)
                            """,
                            [(project_id, table, column) for column in wanted],
                        )

        logger.info(
            f"Saved allowlist for {table}",
            extra={"project_id": project_id, "table": table, "columns": len(wanted)},
        )

    async def get(self, project_id: str) -> dict[str, list[str]]:
        """Return ``{table: [columns]}`` for ``project_id`` (empty if none)."""
        rows = await self._pool.fetch(
            """
            SELECT table_name, column_name
            FROM allowlist_entries
            WHERE project_id = $1
            ORDER BY table_name, column_name
            """,
            project_id,
        )
        tables: dict[str, list[str]] = {}
        for row in rows:
            tables.setdefault(row["table_name"], []).append(row["column_name"])
        return tables
