# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database infrastructure for PostgreSQL.

This package provides:
- connection: The SQLAlchemy async engine for the tenant database
- registry: Read access to the tenant registry table
- introspection: Live structure of tenant namespaces
- executor: Sequential, checkpointed statement execution

Example:
    from src.infrastructure.database import (
        CatalogIntrospector,
        StatementExecutor,
        get_engine,
    )

    async with get_engine().connect() as conn:
        state = await CatalogIntrospector().inspect(conn, "tenant_acme", ["clients"])
"""

from src.infrastructure.database.connection import (
    DatabaseError,
    close_database,
    create_engine_for,
    get_engine,
    init_database,
)
from src.infrastructure.database.executor import StatementExecutor
from src.infrastructure.database.introspection import (
    CatalogIntrospector,
    LiveColumn,
    LiveTable,
    SchemaState,
)
from src.infrastructure.database.registry import Tenant, TenantRegistry

__all__ = [
    # Engine
    "DatabaseError",
    "close_database",
    "create_engine_for",
    "get_engine",
    "init_database",
    # Registry
    "Tenant",
    "TenantRegistry",
    # Introspection
    "CatalogIntrospector",
    "LiveColumn",
    "LiveTable",
    "SchemaState",
    # Execution
    "StatementExecutor",
]
