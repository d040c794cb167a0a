"""
Tests for ColumnAllowlist.

The asyncpg pool is mocked; assertions check the statements issued inside
the transaction.
"""

import gc

import pytest

from sitechat.tools.allowlist import AllowlistError, ColumnAllowlist

SNAPSHOT = {"users": {"id", "email", "name"}, "orders": {"id", "total"}}


class TestSave:
    """Atomic per-table replacement."""

    @pytest.mark.asyncio
    async def test_replaces_table_in_transaction(self, mock_pool):
        pool, conn = mock_pool
        allowlist = ColumnAllowlist(pool)

        await allowlist.save("proj_1", "users", ["email", "name", "email"])

        conn.transaction.assert_called_once()
        statements = [call.args[0] for call in conn.execute.await_args_list]
        assert "pg_advisory_xact_lock" in statements[0]
        assert statements[1].startswith("DELETE FROM allowlist_entries")
        assert conn.execute.await_args_list[1].args[1:] == ("proj_1", "users")

        rows = conn.executemany.await_args.args[1]
        assert rows == [("proj_1", "users", "email"), ("proj_1", "users", "name")]

    @pytest.mark.asyncio
    async def test_empty_columns_only_delete(self, mock_pool):
        pool, conn = mock_pool

        await ColumnAllowlist(pool).save("proj_1", "users", [])

        assert conn.execute.await_count == 2
        conn.executemany.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_validates_against_snapshot(self, mock_pool):
        pool, conn = mock_pool
        allowlist = ColumnAllowlist(pool)

        with pytest.raises(AllowlistError) as exc_info:
            await allowlist.save("proj_1", "users", ["email", "password"], known_columns=SNAPSHOT)

        assert exc_info.value.code == "unknown_columns"
        assert exc_info.value.detail == {"table": "users", "columns": ["password"]}
        pool.acquire.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_table(self, mock_pool):
        pool, _ = mock_pool

        with pytest.raises(AllowlistError):
            await ColumnAllowlist(pool).save("proj_1", "secrets", ["id"], known_columns=SNAPSHOT)

    @pytest.mark.asyncio
    async def test_known_columns_accepted(self, mock_pool):
        pool, conn = mock_pool

        await ColumnAllowlist(pool).save("proj_1", "orders", ["total"], known_columns=SNAPSHOT)

        conn.executemany.assert_awaited_once()

    def test_locks_are_per_project_and_table(self, mock_pool):
        pool, _ = mock_pool
        allowlist = ColumnAllowlist(pool)

        assert allowlist._lock_for("p", "users") is allowlist._lock_for("p", "users")
        assert allowlist._lock_for("p", "users") is not allowlist._lock_for("p", "orders")
        assert allowlist._lock_for("p", "users") is not allowlist._lock_for("q", "users")

    def test_released_locks_are_dropped(self, mock_pool):
        pool, _ = mock_pool
        allowlist = ColumnAllowlist(pool)

        lock = allowlist._lock_for("p", "users")
        assert ("p", "users") in allowlist._locks

        del lock
        gc.collect()
        assert ("p", "users") not in allowlist._locks

    @pytest.mark.asyncio
    async def test_saves_leave_no_locks_behind(self, mock_pool):
        pool, _ = mock_pool
        allowlist = ColumnAllowlist(pool)

        for index in range(20):
            await allowlist.save("proj_1", f"table_{index}", ["id"])

        gc.collect()
        assert len(allowlist._locks) == 0


class InMemoryAllowlistConnection:
    """Applies the allowlist DELETE and INSERT statements to a set of rows."""

    def __init__(self, rows=None):
        self.rows = set(rows or ())

    def transaction(self):
        return _NullContext()

    async def execute(self, sql, *args):
        if sql.startswith("DELETE FROM allowlist_entries"):
            project_id, table = args
            self.rows = {row for row in self.rows if row[:2] != (project_id, table)}

    async def executemany(self, sql, records):
        assert "INSERT INTO allowlist_entries" in sql
        self.rows.update(records)


class _NullContext:
    async def __aenter__(self):
        return None

    async def __aexit__(self, *exc):
        return False


class TestSaveIdempotent:
    """Saving the same columns twice ends in the same state."""

    @pytest.mark.asyncio
    async def test_repeat_save_same_state(self, mock_pool):
        pool, _ = mock_pool
        conn = InMemoryAllowlistConnection(rows={("proj_1", "orders", "total")})
        pool.acquire.return_value.__aenter__.return_value = conn
        allowlist = ColumnAllowlist(pool)

        await allowlist.save("proj_1", "users", ["email", "name"])
        after_first = set(conn.rows)
        await allowlist.save("proj_1", "users", ["email", "name"])

        assert conn.rows == after_first == {
            ("proj_1", "orders", "total"),
            ("proj_1", "users", "email"),
            ("proj_1", "users", "name"),
        }

    @pytest.mark.asyncio
    async def test_resave_replaces_columns(self, mock_pool):
        pool, _ = mock_pool
        conn = InMemoryAllowlistConnection()
        pool.acquire.return_value.__aenter__.return_value = conn
        allowlist = ColumnAllowlist(pool)

        await allowlist.save("proj_1", "users", ["email", "name"])
        await allowlist.save("proj_1", "users", ["email"])

        assert conn.rows == {("proj_1", "users", "email")}


class TestGet:
    @pytest.mark.asyncio
    async def test_groups_rows_by_table(self, mock_pool):
        pool, _ = mock_pool
        pool.fetch.return_value = [
            {"table_name": "orders", "column_name": "total"},
            {"table_name": "users", "column_name": "email"},
            {"table_name": "users", "column_name": "name"},
        ]

        result = await ColumnAllowlist(pool).get("proj_1")

        assert result == {"orders": ["total"], "users": ["email", "name"]}
        assert pool.fetch.await_args.args[1] == "proj_1"

    @pytest.mark.asyncio
    async def test_empty(self, mock_pool):
        pool, _ = mock_pool
        assert await ColumnAllowlist(pool).get("proj_1") == {}
