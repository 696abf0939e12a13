# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structural alignment of existing tenant namespaces.

The aligner compares each catalog table with its live counterpart and
issues only the statements needed to close the gap. Running it against
an aligned namespace issues nothing.

Per table, in catalog order:
1. A missing table is created whole, with its indexes.
2. Columns:
   a. Missing columns are added, always nullable at first. A column that
      replaces an obsolete one gets its default only after the data copy.
   b. Obsolete columns listed in the rename map have their data copied
      into the replacement column, then are dropped. Obsolete columns
      not in the map are reported and left untouched.
   c. Nullability: constraints the catalog no longer requires are relaxed
      first; required columns are then backfilled and set NOT NULL. A
      required column with no safe fill value is reported and left
      nullable.
   d. Defaults are set or dropped to match the catalog.
3. Missing indexes are created. Indexes are never dropped.

Every statement commits on its own. A failing statement aborts the
current table only; the remaining tables are still aligned and the next
run resumes from whatever state was reached.
"""

import copy
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from src.core.schema import statements
from src.core.schema.catalog import TableSpec, TableSpecCatalog
from src.core.schema.errors import StatementExecutionError
from src.core.schema.statements import (
    AppliedChange,
    base_type,
    normalize_default,
    normalize_type,
    null_fill_expression,
)
from src.domains.tenancy.models import Notice, NoticeKind
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.infrastructure.database.executor import StatementExecutor
from src.infrastructure.database.introspection import LiveColumn, LiveTable, SchemaState

logger = logging.getLogger(__name__)


@dataclass
class AlignmentPass:
    """Everything one alignment pass over a namespace produced.

    Attributes:
        changes: Applied changes in execution order.
        failures: Per table, the error that aborted its alignment.
        notices: Findings that need an operator decision.
    """

    changes: list[AppliedChange] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)
    notices: list[Notice] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class SchemaAligner:
    """Brings existing namespaces in line with the catalog.

    Attributes:
        catalog: Catalog providing the rename maps.
        provisioner: Used to create tables missing from a namespace.

    Example:
        >>> aligner = SchemaAligner(CATALOG)
        >>> result = await aligner.align(executor, "tenant_acme", CATALOG.all_table_specs(), state)
        >>> result.failures
        {}
    """

    def __init__(
        self,
        catalog: TableSpecCatalog,
        provisioner: Optional[SchemaProvisioner] = None,
    ) -> None:
        self.catalog = catalog
        self.provisioner = provisioner or SchemaProvisioner()

    async def align(
        self,
        executor: StatementExecutor,
        namespace: str,
        specs: Iterable[TableSpec],
        state: SchemaState,
    ) -> AlignmentPass:
        """Align every table of an existing namespace.

        Args:
            executor: Executor bound to the tenant connection.
            namespace: Namespace being aligned.
            specs: Table specs in catalog order.
            state: Live state as introspected at the start of the run.
                It is not modified.

        Returns:
            The alignment pass. Table failures are recorded in it, never raised.
        """
        result = AlignmentPass()
        start = len(executor.applied)

        for spec in specs:
            live = copy.deepcopy(state.table(spec.name))
            try:
                await self._align_table(executor, namespace, spec, live, result)
            except StatementExecutionError as e:
                logger.warning("Alignment of %s.%s aborted: %s", namespace, spec.name, e)
                result.failures[spec.name] = str(e)

        # The executor records statements as they succeed, including those
        # applied before a table failed
        result.changes = executor.applied[start:]

        logger.info(
            "Aligned namespace %s: %d changes, %d notices, %d failed tables",
            namespace,
            len(result.changes),
            len(result.notices),
            len(result.failures),
        )
        return result

    async def _align_table(
        self,
        executor: StatementExecutor,
        namespace: str,
        spec: TableSpec,
        live: Optional[LiveTable],
        result: AlignmentPass,
    ) -> None:
        run = executor.execute

        if live is None:
            logger.info("Creating missing table %s.%s", namespace, spec.name)
            await self.provisioner.create_table(executor, namespace, spec)
            return

        renames = self.catalog.rename_map(spec.name)
        # Replacements still to be filled from an obsolete column present in the table
        rename_targets = {
            renames[name] for name in live.columns if name in renames and spec.column(name) is None
        }

        # 2a. Missing columns
        for column in spec.columns:
            if column.name in live.columns:
                continue
            # A default would be written into every row and hide the renamed data
            with_default = column.name not in rename_targets
            await run(statements.add_column(namespace, spec.name, column, include_default=with_default))
            live.columns[column.name] = LiveColumn(
                name=column.name,
                data_type=normalize_type(column.data_type),
                nullable=True,
                default=column.default if with_default else None,
            )

        mismatched = self._type_mismatches(spec, live, result)

        # 2b. Obsolete columns
        for name in [name for name in live.columns if spec.column(name) is None]:
            replacement = spec.column(renames[name]) if name in renames else None
            if replacement is None:
                result.notices.append(_unmapped_notice(spec.name, live.columns[name]))
                continue

            await run(statements.backfill_renamed_column(namespace, spec.name, name, replacement))
            await run(statements.drop_column(namespace, spec.name, name))
            del live.columns[name]

        # 2c. Nullability: relax before tightening
        for column in spec.columns:
            current = live.columns[column.name]
            if column.nullable and not current.nullable and column.name != spec.primary_key:
                await run(statements.drop_not_null(namespace, spec.name, column.name))
                current.nullable = True

        for column in spec.columns:
            current = live.columns[column.name]
            if column.nullable or not current.nullable or column.name in mismatched:
                continue
            fill = null_fill_expression(column)
            if fill is None:
                result.notices.append(
                    Notice(
                        kind=NoticeKind.MISSING_FILL_VALUE,
                        table=spec.name,
                        column=column.name,
                        message=(
                            f"Column {column.name} has no default or fill value to replace NULLs; "
                            "left nullable"
                        ),
                    )
                )
                continue
            await run(statements.backfill_nulls(namespace, spec.name, column.name, fill))
            await run(statements.set_not_null(namespace, spec.name, column.name))
            current.nullable = False

        # 2d. Defaults
        for column in spec.columns:
            if column.name in mismatched:
                continue
            current = live.columns[column.name]
            if normalize_default(current.default) == normalize_default(column.default):
                continue
            if column.default is None:
                await run(statements.drop_default(namespace, spec.name, column.name))
            else:
                await run(statements.set_default(namespace, spec.name, column))
            current.default = column.default

        # 3. Indexes
        for index in spec.indexes:
            if index.name in live.indexes:
                continue
            await run(statements.create_index(namespace, spec.name, index))
            live.indexes.add(index.name)

    @staticmethod
    def _type_mismatches(spec: TableSpec, live: LiveTable, result: AlignmentPass) -> set[str]:
        """Report columns whose live type differs from the catalog type.

        Type changes are left to the operator. Columns of a different base
        type are excluded from null backfill and default changes; a column
        that only differs in length or precision is reported and otherwise
        aligned as usual.

        Returns:
            Names of the columns with a different base type.
        """
        mismatched = set()
        for column in spec.columns:
            current = live.columns[column.name]
            if normalize_type(column.data_type) == normalize_type(current.data_type):
                continue

            if base_type(column.data_type) == base_type(current.data_type):
                consequence = "length or precision left unchanged"
            else:
                mismatched.add(column.name)
                consequence = "nullability and default left unchanged"
            result.notices.append(
                Notice(
                    kind=NoticeKind.TYPE_MISMATCH,
                    table=spec.name,
                    column=column.name,
                    message=(
                        f"Column {column.name} is {current.data_type}, catalog declares "
                        f"{column.data_type}; {consequence}"
                    ),
                )
            )
        return mismatched


def _unmapped_notice(table: str, column: LiveColumn) -> Notice:
    message = f"Column {column.name} is not in the catalog and has no known replacement; left untouched"
    if not column.nullable and column.default is None:
        message += ". It is NOT NULL without a default, so inserts that omit it will fail"
    return Notice(
        kind=NoticeKind.UNMAPPED_OBSOLETE_COLUMN,
        table=table,
        column=column.name,
        message=message,
    )
