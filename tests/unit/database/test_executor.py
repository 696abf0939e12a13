# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for StatementExecutor."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import ProgrammingError

from src.core.schema import statements
from src.core.schema.catalog import ColumnSpec
from src.core.schema.errors import StatementExecutionError
from src.core.schema.statements import ChangeKind
from src.infrastructure.database.executor import StatementExecutor


def _conn(rowcount: int = 0) -> MagicMock:
    conn = MagicMock()
    result = MagicMock()
    result.rowcount = rowcount
    conn.execute = AsyncMock(return_value=result)
    return conn


class TestStatementExecutor:
    """Tests for StatementExecutor."""

    @pytest.mark.asyncio
    async def test_executes_and_records(self) -> None:
        """Test that executed statements are recorded in order."""
        conn = _conn()
        executor = StatementExecutor(conn)

        change = await executor.execute(statements.create_schema("tenant_a"))

        assert change.kind == ChangeKind.CREATE_SCHEMA
        assert change.rows_affected is None
        assert executor.applied == [change]
        conn.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reports_row_count_for_backfills(self) -> None:
        """Test that data statements carry their row count."""
        executor = StatementExecutor(_conn(rowcount=7))

        change = await executor.execute(
            statements.backfill_renamed_column("tenant_a", "tasks", "due_date", ColumnSpec("end_date", "DATE"))
        )

        assert change.rows_affected == 7

    @pytest.mark.asyncio
    async def test_lock_timeout_applied_once(self) -> None:
        """Test that the session lock timeout precedes the first statement only."""
        conn = _conn()
        executor = StatementExecutor(conn, lock_timeout_ms=5000)

        await executor.execute(statements.create_schema("tenant_a"))
        await executor.execute(statements.drop_column("tenant_a", "tasks", "x"))

        sql = [str(call.args[0]) for call in conn.execute.await_args_list]
        assert sql[0] == "SET lock_timeout = 5000"
        assert sql.count("SET lock_timeout = 5000") == 1
        assert len(sql) == 3

    @pytest.mark.asyncio
    async def test_dry_run_does_not_touch_connection(self) -> None:
        """Test that planning mode only records statements."""
        conn = _conn()
        executor = StatementExecutor(conn, dry_run=True, lock_timeout_ms=5000)

        await executor.execute(statements.create_schema("tenant_a"))

        conn.execute.assert_not_awaited()
        assert [change.kind for change in executor.applied] == [ChangeKind.CREATE_SCHEMA]

    @pytest.mark.asyncio
    async def test_database_error_is_wrapped(self) -> None:
        """Test that a rejected statement raises StatementExecutionError."""
        conn = MagicMock()
        conn.execute = AsyncMock(side_effect=ProgrammingError("ALTER", {}, Exception("boom")))
        executor = StatementExecutor(conn)
        statement = statements.set_not_null("tenant_a", "tasks", "title")

        with pytest.raises(StatementExecutionError) as exc_info:
            await executor.execute(statement)

        assert exc_info.value.statement is statement
        assert "set_not_null on tasks" in str(exc_info.value)
        assert executor.applied == []
