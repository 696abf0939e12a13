# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Declarative table catalog types.

The catalog is the single source of truth for the structure of every
tenant namespace. Structural changes are expressed as catalog edits
(new columns, changed nullability or defaults, entries in the rename map),
never as one-off repair scripts. The aligner turns the difference between
the catalog and a live namespace into statements.

Example:
    >>> from src.core.schema.tables import CATALOG
    >>> [spec.name for spec in CATALOG.all_table_specs()][:2]
    ['clients', 'deals']
    >>> CATALOG.rename_map("tasks")
    {'due_date': 'end_date'}
"""

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Optional

from src.core.schema.errors import CatalogError
from src.core.schema.naming import is_safe_identifier

# e.g. UUID, TEXT, VARCHAR(255), DECIMAL(15,2), TIMESTAMP WITH TIME ZONE
_DATA_TYPE = re.compile(r"^[A-Z]+( [A-Z]+)*(\(\d+(,\s*\d+)?\))?$")


@dataclass(frozen=True)
class ColumnSpec:
    """Canonical definition of a single column.

    Attributes:
        name: Column name.
        data_type: PostgreSQL type in upper case, e.g. ``VARCHAR(255)``.
        nullable: Whether NULL values are allowed.
        default: Default SQL expression, e.g. ``'BRL'`` or ``now()``.
        check: CHECK constraint expression applied when the column is created.
        fill: Value written into existing NULL rows before NOT NULL is
            enforced, for required columns without a default. Never used
            as a default for new rows.
    """

    name: str
    data_type: str
    nullable: bool = True
    default: Optional[str] = None
    check: Optional[str] = None
    fill: Optional[str] = None


@dataclass(frozen=True)
class IndexSpec:
    """Canonical definition of an index."""

    name: str
    columns: tuple[str, ...]
    unique: bool = False


@dataclass(frozen=True)
class TableSpec:
    """Canonical definition of a table.

    Attributes:
        name: Table name.
        columns: Columns in creation order.
        indexes: Indexes created after all tables exist.
        primary_key: Name of the generated identifier column.
    """

    name: str
    columns: tuple[ColumnSpec, ...]
    indexes: tuple[IndexSpec, ...] = ()
    primary_key: str = "id"

    def column(self, name: str) -> Optional[ColumnSpec]:
        """Get a column by name, or None."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    @property
    def column_names(self) -> list[str]:
        """Column names in declaration order."""
        return [column.name for column in self.columns]


@dataclass(frozen=True)
class TableSpecCatalog:
    """Versioned, validated collection of table specs.

    Attributes:
        version: Catalog version, bumped with every structural edit.
        tables: Table specs in creation order.
        renames: Per table, obsolete column name -> replacement column name.
    """

    version: str
    tables: tuple[TableSpec, ...]
    renames: Mapping[str, Mapping[str, str]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        _validate_catalog(self.tables, self.renames)

    def all_table_specs(self) -> tuple[TableSpec, ...]:
        """Get every table spec in catalog order."""
        return self.tables

    def table_names(self) -> list[str]:
        """Get table names in catalog order."""
        return [spec.name for spec in self.tables]

    def get(self, name: str) -> Optional[TableSpec]:
        """Get a table spec by name, or None."""
        for spec in self.tables:
            if spec.name == name:
                return spec
        return None

    def rename_map(self, table: str) -> dict[str, str]:
        """Get the known historical renames for a table.

        This map is the only place that declares migration intent for
        obsolete columns. A column missing from it is never dropped.

        Args:
            table: Table name.

        Returns:
            Mapping of obsolete column name to replacement column name.
        """
        return dict(self.renames.get(table, {}))


def _validate_catalog(
    tables: Iterable[TableSpec],
    renames: Mapping[str, Mapping[str, str]],
) -> None:
    """Check the catalog for internal consistency.

    Raises:
        CatalogError: On the first inconsistency found.
    """
    specs = {}
    index_names: set[str] = set()

    for spec in tables:
        if not is_safe_identifier(spec.name):
            raise CatalogError(f"Unsafe table name: {spec.name!r}")
        if spec.name in specs:
            raise CatalogError(f"Duplicate table: {spec.name}")
        specs[spec.name] = spec

        seen: set[str] = set()
        for column in spec.columns:
            if not is_safe_identifier(column.name):
                raise CatalogError(f"Unsafe column name: {spec.name}.{column.name!r}")
            if column.name in seen:
                raise CatalogError(f"Duplicate column: {spec.name}.{column.name}")
            if not _DATA_TYPE.match(column.data_type):
                raise CatalogError(
                    f"Unsupported data type for {spec.name}.{column.name}: {column.data_type!r}"
                )
            for expression in (column.default, column.check, column.fill):
                if expression is not None and ";" in expression:
                    raise CatalogError(f"Invalid expression for {spec.name}.{column.name}")
            if not column.nullable and column.check is not None and column.default is None and column.fill is None:
                # A type fallback such as '' would violate the CHECK
                raise CatalogError(
                    f"Required column with a CHECK needs a default or fill value: {spec.name}.{column.name}"
                )
            seen.add(column.name)

        primary_key = spec.column(spec.primary_key)
        if primary_key is None:
            raise CatalogError(f"Primary key column missing: {spec.name}.{spec.primary_key}")
        if primary_key.nullable:
            raise CatalogError(f"Primary key column must be NOT NULL: {spec.name}.{spec.primary_key}")

        for index in spec.indexes:
            if not is_safe_identifier(index.name):
                raise CatalogError(f"Unsafe index name: {index.name!r}")
            # Index names share one namespace per schema
            if index.name in index_names:
                raise CatalogError(f"Duplicate index: {index.name}")
            index_names.add(index.name)
            if not index.columns:
                raise CatalogError(f"Index without columns: {index.name}")
            for column_name in index.columns:
                if column_name not in seen:
                    raise CatalogError(
                        f"Index {index.name} references unknown column {spec.name}.{column_name}"
                    )

    for table, mapping in renames.items():
        spec = specs.get(table)
        if spec is None:
            raise CatalogError(f"Rename map for unknown table: {table}")
        for obsolete, replacement in mapping.items():
            if not is_safe_identifier(obsolete):
                raise CatalogError(f"Unsafe obsolete column name: {table}.{obsolete!r}")
            if spec.column(obsolete) is not None:
                raise CatalogError(f"Obsolete column is still declared in the catalog: {table}.{obsolete}")
            if spec.column(replacement) is None:
                raise CatalogError(
                    f"Rename target missing from the catalog: {table}.{obsolete} -> {replacement}"
                )
