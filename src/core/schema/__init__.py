# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant schema definitions.

This package holds everything that is independent of a live database:
- naming: Namespace name resolution and identifier quoting
- catalog: Declarative table, column and index specs
- tables: The canonical tenant table catalog
- statements: Idempotent SQL statement builders
- errors: Exceptions raised by the schema engine
"""

from src.core.schema.catalog import ColumnSpec, IndexSpec, TableSpec, TableSpecCatalog
from src.core.schema.errors import (
    CatalogError,
    IntrospectionError,
    InvalidTenantIdentifierError,
    RegistryError,
    SchemaEngineError,
    StatementExecutionError,
)
from src.core.schema.naming import quote_identifier, resolve_namespace
from src.core.schema.statements import AppliedChange, ChangeKind, Statement
from src.core.schema.tables import CATALOG, CATALOG_VERSION

__all__ = [
    # Catalog
    "CATALOG",
    "CATALOG_VERSION",
    "ColumnSpec",
    "IndexSpec",
    "TableSpec",
    "TableSpecCatalog",
    # Naming
    "quote_identifier",
    "resolve_namespace",
    # Statements
    "AppliedChange",
    "ChangeKind",
    "Statement",
    # Errors
    "CatalogError",
    "IntrospectionError",
    "InvalidTenantIdentifierError",
    "RegistryError",
    "SchemaEngineError",
    "StatementExecutionError",
]
