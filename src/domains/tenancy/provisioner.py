# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Provisioning of brand-new tenant namespaces.

A new namespace is created in three phases: the schema, every table in
catalog order, then every index. All statements use IF NOT EXISTS, so a
provisioning run interrupted halfway can simply be repeated.

Tables never reference other namespaces; isolation between tenants is
structural.

Example:
    >>> provisioner = SchemaProvisioner()
    >>> changes = await provisioner.provision(executor, "tenant_acme", CATALOG.all_table_specs())
"""

import logging
from collections.abc import Iterable

from src.core.schema import statements
from src.core.schema.catalog import TableSpec
from src.core.schema.statements import AppliedChange
from src.infrastructure.database.executor import StatementExecutor

logger = logging.getLogger(__name__)


class SchemaProvisioner:
    """Creates namespaces and tables from catalog specs."""

    async def provision(
        self,
        executor: StatementExecutor,
        namespace: str,
        specs: Iterable[TableSpec],
    ) -> list[AppliedChange]:
        """Create a namespace with all of its tables and indexes.

        Args:
            executor: Executor bound to the tenant connection.
            namespace: Namespace to create.
            specs: Table specs in creation order.

        Returns:
            Changes applied, in order.

        Raises:
            StatementExecutionError: If any statement fails. Statements
                already executed stay applied.
        """
        specs = list(specs)
        changes = [await executor.execute(statements.create_schema(namespace))]

        for spec in specs:
            changes.append(await executor.execute(statements.create_table(namespace, spec)))

        for spec in specs:
            for index in spec.indexes:
                changes.append(await executor.execute(statements.create_index(namespace, spec.name, index)))

        logger.info("Provisioned namespace %s with %d tables", namespace, len(specs))
        return changes

    async def create_table(
        self,
        executor: StatementExecutor,
        namespace: str,
        spec: TableSpec,
    ) -> list[AppliedChange]:
        """Create a single table and its indexes in an existing namespace.

        Args:
            executor: Executor bound to the tenant connection.
            namespace: Existing namespace.
            spec: Table spec.

        Returns:
            Changes applied, in order.
        """
        changes = [await executor.execute(statements.create_table(namespace, spec))]
        for index in spec.indexes:
            changes.append(await executor.execute(statements.create_index(namespace, spec.name, index)))
        return changes
