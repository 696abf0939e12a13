# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Sequential statement execution against one tenant connection.

The executor expects a connection in AUTOCOMMIT isolation: each
statement commits on its own and is a checkpoint. If a later statement
fails, everything before it stays applied and the next run picks up
from there.

In dry-run mode nothing is sent to the database; statements are only
recorded, which turns an alignment into a plan.

Example:
    async with engine.connect() as conn:
        conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
        executor = StatementExecutor(conn, lock_timeout_ms=5000)
        await executor.prepare()
        change = await executor.execute(create_schema("tenant_acme"))
"""

import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection

from src.core.schema.errors import StatementExecutionError
from src.core.schema.statements import AppliedChange, ChangeKind, Statement, set_lock_timeout

logger = logging.getLogger(__name__)

_DATA_KINDS = frozenset({ChangeKind.BACKFILL_RENAMED, ChangeKind.BACKFILL_NULLS})


class StatementExecutor:
    """Runs statements one at a time and records what was applied.

    Attributes:
        dry_run: Whether statements are only recorded.
        applied: Changes applied (or planned) so far, in order.
    """

    def __init__(
        self,
        conn: AsyncConnection,
        dry_run: bool = False,
        lock_timeout_ms: Optional[int] = None,
    ) -> None:
        """Initialize the executor.

        Args:
            conn: Connection in AUTOCOMMIT isolation.
            dry_run: Record statements without executing them.
            lock_timeout_ms: Session lock timeout; None or 0 leaves the
                server default in place.
        """
        self._conn = conn
        self.dry_run = dry_run
        self._lock_timeout_ms = lock_timeout_ms
        self._prepared = False
        self.applied: list[AppliedChange] = []

    async def prepare(self) -> None:
        """Apply session settings once per connection.

        A DDL statement waiting on a lock held by application traffic
        fails after the timeout instead of queueing every other query
        behind it.
        """
        if self._prepared:
            return
        self._prepared = True

        if self.dry_run or not self._lock_timeout_ms:
            return
        await self._conn.execute(text(set_lock_timeout(self._lock_timeout_ms)))

    async def execute(self, statement: Statement) -> AppliedChange:
        """Execute a single statement.

        Args:
            statement: Statement to execute.

        Returns:
            The applied change, with the row count for data statements.

        Raises:
            StatementExecutionError: If the database rejects the statement.
        """
        await self.prepare()

        if self.dry_run:
            logger.info("[dry-run] %s", statement.sql)
            change = AppliedChange.from_statement(statement)
            self.applied.append(change)
            return change

        logger.debug("Executing %s on %s: %s", statement.kind.value, statement.table, statement.sql)
        try:
            result = await self._conn.execute(text(statement.sql), statement.params)
        except DBAPIError as e:
            logger.warning(
                "Statement failed (%s on %s): %s",
                statement.kind.value,
                statement.table,
                e.orig if e.orig is not None else e,
            )
            raise StatementExecutionError(statement, e) from e

        rows_affected = result.rowcount if statement.kind in _DATA_KINDS else None
        change = AppliedChange.from_statement(statement, rows_affected)
        self.applied.append(change)
        return change
