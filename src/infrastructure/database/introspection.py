# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read-only introspection of tenant namespaces.

Reads the live structure of a namespace from information_schema and
pg_indexes. The result is rebuilt on every run and never cached, so
alignment always starts from what is actually in the database.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import bindparam, text
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncConnection

from src.core.schema.errors import IntrospectionError

logger = logging.getLogger(__name__)

_NAMESPACE_QUERY = text(
    "SELECT 1 FROM information_schema.schemata WHERE schema_name = :namespace"
)

_TABLES_QUERY = text(
    """
    SELECT table_name
    FROM information_schema.tables
    WHERE table_schema = :namespace
      AND table_type = 'BASE TABLE'
      AND table_name IN :table_names
    """
).bindparams(bindparam("table_names", expanding=True))

_COLUMNS_QUERY = text(
    """
    SELECT table_name, column_name, data_type, is_nullable, column_default,
           character_maximum_length, numeric_precision, numeric_scale
    FROM information_schema.columns
    WHERE table_schema = :namespace
      AND table_name IN :table_names
    ORDER BY table_name, ordinal_position
    """
).bindparams(bindparam("table_names", expanding=True))

_INDEXES_QUERY = text(
    """
    SELECT tablename, indexname
    FROM pg_indexes
    WHERE schemaname = :namespace
      AND tablename IN :table_names
    """
).bindparams(bindparam("table_names", expanding=True))


@dataclass
class LiveColumn:
    """A column as it exists in the database.

    Attributes:
        name: Column name.
        data_type: Type with its length or precision, e.g.
            ``character varying(255)`` or ``numeric(15,2)``.
        nullable: Whether NULLs are allowed.
        default: Default expression as stored by PostgreSQL, if any.
    """

    name: str
    data_type: str
    nullable: bool
    default: Optional[str] = None


@dataclass
class LiveTable:
    """A table as it exists in the database."""

    name: str
    columns: dict[str, LiveColumn] = field(default_factory=dict)
    indexes: set[str] = field(default_factory=set)


@dataclass
class SchemaState:
    """Live structure of one namespace, limited to catalog tables.

    Attributes:
        namespace: Namespace name.
        namespace_exists: Whether the schema exists at all.
        tables: Existing catalog tables by name.
    """

    namespace: str
    namespace_exists: bool
    tables: dict[str, LiveTable] = field(default_factory=dict)

    def table(self, name: str) -> Optional[LiveTable]:
        """Get a live table by name, or None if absent."""
        return self.tables.get(name)


class CatalogIntrospector:
    """Builds a SchemaState for a namespace.

    Example:
        introspector = CatalogIntrospector()
        state = await introspector.inspect(conn, "tenant_acme", CATALOG.table_names())
        if not state.namespace_exists:
            ...
    """

    async def inspect(
        self,
        conn: AsyncConnection,
        namespace: str,
        table_names: Iterable[str],
    ) -> SchemaState:
        """Read the live structure of a namespace.

        Tables that do not exist are simply absent from the result.

        Args:
            conn: Database connection.
            namespace: Namespace to inspect.
            table_names: Tables of interest (the catalog's tables).

        Returns:
            The live schema state.

        Raises:
            IntrospectionError: On connection or permission failures.
        """
        names = list(table_names)
        try:
            exists = (await conn.execute(_NAMESPACE_QUERY, {"namespace": namespace})).first()
            if exists is None:
                logger.debug("Namespace %s does not exist", namespace)
                return SchemaState(namespace=namespace, namespace_exists=False)

            state = SchemaState(namespace=namespace, namespace_exists=True)
            if not names:
                return state

            params = {"namespace": namespace, "table_names": names}

            for row in (await conn.execute(_TABLES_QUERY, params)).all():
                state.tables[row.table_name] = LiveTable(name=row.table_name)

            for row in (await conn.execute(_COLUMNS_QUERY, params)).all():
                table = state.tables.get(row.table_name)
                if table is None:
                    continue
                table.columns[row.column_name] = LiveColumn(
                    name=row.column_name,
                    data_type=_render_type(row),
                    nullable=row.is_nullable == "YES",
                    default=row.column_default,
                )

            for row in (await conn.execute(_INDEXES_QUERY, params)).all():
                table = state.tables.get(row.tablename)
                if table is not None:
                    table.indexes.add(row.indexname)
        except (DBAPIError, OSError) as e:
            raise IntrospectionError(namespace, e) from e

        logger.debug(
            "Namespace %s: %d of %d catalog tables present",
            namespace,
            len(state.tables),
            len(names),
        )
        return state


def _render_type(row) -> str:
    """Combine information_schema's type name with its modifier columns."""
    if row.character_maximum_length is not None:
        return f"{row.data_type}({row.character_maximum_length})"
    if row.data_type == "numeric" and row.numeric_precision is not None:
        return f"numeric({row.numeric_precision},{row.numeric_scale or 0})"
    return row.data_type
