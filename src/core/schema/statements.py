# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SQL statement builders for tenant namespaces.

Identifiers are validated and quoted by quote_identifier before they
reach SQL text. Type, default and check expressions come only from the
static table catalog. DDL carries no bound parameters (PostgreSQL cannot
bind them in utility statements).

Every builder produces an idempotent statement, so re-running a
statement that already took effect is harmless.
"""

import re
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from src.core.schema.catalog import ColumnSpec, IndexSpec, TableSpec
from src.core.schema.naming import quote_identifier


class ChangeKind(str, Enum):
    """Kinds of structural changes applied to a namespace."""

    CREATE_SCHEMA = "create_schema"
    CREATE_TABLE = "create_table"
    ADD_COLUMN = "add_column"
    BACKFILL_RENAMED = "backfill_renamed"
    DROP_COLUMN = "drop_column"
    BACKFILL_NULLS = "backfill_nulls"
    SET_NOT_NULL = "set_not_null"
    DROP_NOT_NULL = "drop_not_null"
    SET_DEFAULT = "set_default"
    DROP_DEFAULT = "drop_default"
    CREATE_INDEX = "create_index"


@dataclass(frozen=True)
class Statement:
    """A single SQL statement plus what it is meant to change.

    Attributes:
        sql: Statement text.
        params: Bound parameters (empty for DDL).
        kind: Kind of change.
        table: Target table, None for schema-level statements.
        column: Target column, if any.
        detail: Short human-readable description.
    """

    sql: str
    kind: ChangeKind
    table: Optional[str] = None
    column: Optional[str] = None
    detail: str = ""
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AppliedChange:
    """A statement that was executed (or planned, in dry-run mode).

    Attributes:
        kind: Kind of change.
        table: Target table.
        column: Target column, if any.
        sql: Statement text.
        detail: Short human-readable description.
        rows_affected: Row count for data statements, None otherwise.
    """

    kind: ChangeKind
    table: Optional[str]
    column: Optional[str]
    sql: str
    detail: str = ""
    rows_affected: Optional[int] = None

    @classmethod
    def from_statement(cls, statement: Statement, rows_affected: Optional[int] = None) -> "AppliedChange":
        """Create an applied change record from a statement."""
        return cls(
            kind=statement.kind,
            table=statement.table,
            column=statement.column,
            sql=statement.sql,
            detail=statement.detail,
            rows_affected=rows_affected,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "kind": self.kind.value,
            "table": self.table,
            "column": self.column,
            "sql": self.sql,
            "detail": self.detail,
            "rows_affected": self.rows_affected,
        }


# =============================================================================
# Normalization
# =============================================================================

_CAST = re.compile(r"::\s*[a-z_][a-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?(\[\])?")
_WHITESPACE = re.compile(r"\s+")
_NUMBER = re.compile(r"^'?(-?\d+(\.\d+)?)'?$")
_LITERAL = re.compile(r"('(?:[^']|'')*')")
_MODIFIED_TYPE = re.compile(r"^(?P<base>[a-z][a-z0-9_ ]*?)\s*(\((?P<args>[\d\s,]*)\))?$")

_TYPE_ALIASES = [
    (re.compile(r"^(varchar|character varying)$"), "character varying"),
    (re.compile(r"^(char|character|bpchar)$"), "character"),
    (re.compile(r"^(decimal|numeric)$"), "numeric"),
    (re.compile(r"^(timestamptz|timestamp with time zone)$"), "timestamp with time zone"),
    (re.compile(r"^(timestamp|timestamp without time zone)$"), "timestamp without time zone"),
    (re.compile(r"^(int|int4|integer)$"), "integer"),
    (re.compile(r"^(int8|bigint)$"), "bigint"),
    (re.compile(r"^(int2|smallint)$"), "smallint"),
    (re.compile(r"^(bool|boolean)$"), "boolean"),
    (re.compile(r"^(float8|double precision)$"), "double precision"),
    (re.compile(r"^(float4|real)$"), "real"),
]

# Safe fill values for required columns without a declared default or fill
_FILL_VALUES = {
    "character varying": "''",
    "character": "''",
    "text": "''",
    "integer": "0",
    "bigint": "0",
    "smallint": "0",
    "numeric": "0",
    "real": "0",
    "double precision": "0",
    "boolean": "false",
    "jsonb": "'[]'::jsonb",
    "json": "'[]'::json",
    "date": "CURRENT_DATE",
    "timestamp with time zone": "now()",
    "timestamp without time zone": "now()",
    "uuid": "gen_random_uuid()",
}


def normalize_type(data_type: str) -> str:
    """Map a catalog or live type rendering to one canonical form.

    Aliases are resolved and length or precision modifiers are kept in
    a compact form, so ``DECIMAL(15, 2)`` and ``numeric(15,2)`` compare
    equal while ``numeric(12,2)`` does not.

    Example:
        >>> normalize_type("VARCHAR(255)")
        'character varying(255)'
        >>> normalize_type("TIMESTAMPTZ")
        'timestamp with time zone'
    """
    value = _WHITESPACE.sub(" ", data_type.strip().lower())
    match = _MODIFIED_TYPE.match(value)
    if match is None:
        return value

    base = match.group("base")
    for pattern, canonical in _TYPE_ALIASES:
        if pattern.match(base):
            base = canonical
            break

    args = match.group("args")
    if args is None:
        return base
    return f"{base}({','.join(part.strip() for part in args.split(','))})"


def base_type(data_type: str) -> str:
    """Get the canonical type without its length or precision modifier.

    Example:
        >>> base_type("DECIMAL(15,2)")
        'numeric'
    """
    return normalize_type(data_type).split("(", 1)[0]


def normalize_default(expression: Optional[str]) -> Optional[str]:
    """Canonicalize a default expression for comparison.

    PostgreSQL stores defaults in its own rendering, e.g. ``'BRL'`` comes
    back as ``'BRL'::character varying``. Casts, redundant outer
    parentheses, case and whitespace are removed from both sides, and
    numeric literals are reduced to their canonical value. Quoted string
    literals are kept verbatim.

    Example:
        >>> normalize_default("'BRL'::character varying")
        "'BRL'"
        >>> normalize_default("NOW()")
        'now()'
    """
    if expression is None:
        return None
    # Odd positions hold the quoted literals
    parts = _LITERAL.split(expression.strip())
    for position in range(0, len(parts), 2):
        parts[position] = _WHITESPACE.sub(" ", _CAST.sub("", parts[position].lower()))
    value = "".join(parts).strip()
    while value.startswith("(") and value.endswith(")") and _wraps(value):
        value = value[1:-1].strip()
    number = _NUMBER.match(value)
    if number:
        # numeric(p,s) defaults come back scaled, e.g. 0 as 0.00
        value = format(Decimal(number.group(1)).normalize(), "f")
    return value or None


def _wraps(value: str) -> bool:
    """Check whether the first parenthesis closes at the last character."""
    depth = 0
    for position, char in enumerate(value):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and position != len(value) - 1:
                return False
    return depth == 0


def null_fill_expression(column: ColumnSpec) -> Optional[str]:
    """Get the value used to backfill NULLs before SET NOT NULL.

    The column's declared default wins, then its declared fill value,
    then a safe value derived from the column type. Type-derived values
    are never used for a column with a CHECK, which they could violate.
    None if no safe value is known.
    """
    if column.default is not None:
        return column.default
    if column.fill is not None:
        return column.fill
    if column.check is not None:
        return None
    return _FILL_VALUES.get(base_type(column.data_type))


# =============================================================================
# Builders
# =============================================================================


def _qualified(namespace: str, table: str) -> str:
    return f"{quote_identifier(namespace)}.{quote_identifier(table)}"


def column_definition(
    column: ColumnSpec,
    include_not_null: bool = True,
    include_default: bool = True,
) -> str:
    """Render a column definition for CREATE TABLE or ADD COLUMN."""
    parts = [quote_identifier(column.name), column.data_type]
    if include_not_null and not column.nullable:
        parts.append("NOT NULL")
    if include_default and column.default is not None:
        parts.append(f"DEFAULT {column.default}")
    if column.check is not None:
        parts.append(f"CHECK ({column.check})")
    return " ".join(parts)


def set_lock_timeout(milliseconds: int) -> str:
    """Render the session lock timeout setting."""
    return f"SET lock_timeout = {int(milliseconds)}"


def create_schema(namespace: str) -> Statement:
    return Statement(
        sql=f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(namespace)}",
        kind=ChangeKind.CREATE_SCHEMA,
        detail=f"create namespace {namespace}",
    )


def create_table(namespace: str, spec: TableSpec) -> Statement:
    """Build CREATE TABLE IF NOT EXISTS with full column definitions.

    Args:
        namespace: Target namespace.
        spec: Table spec; columns are created in spec order.

    Returns:
        The statement. Indexes are built separately with create_index.
    """
    lines = [f"    {column_definition(column)}" for column in spec.columns]
    lines.append(f"    PRIMARY KEY ({quote_identifier(spec.primary_key)})")
    body = ",\n".join(lines)
    return Statement(
        sql=f"CREATE TABLE IF NOT EXISTS {_qualified(namespace, spec.name)} (\n{body}\n)",
        kind=ChangeKind.CREATE_TABLE,
        table=spec.name,
        detail=f"create table {spec.name}",
    )


def create_index(namespace: str, table: str, index: IndexSpec) -> Statement:
    unique = "UNIQUE " if index.unique else ""
    columns = ", ".join(quote_identifier(name) for name in index.columns)
    return Statement(
        sql=(
            f"CREATE {unique}INDEX IF NOT EXISTS {quote_identifier(index.name)} "
            f"ON {_qualified(namespace, table)} ({columns})"
        ),
        kind=ChangeKind.CREATE_INDEX,
        table=table,
        detail=f"create index {index.name}",
    )


def add_column(
    namespace: str,
    table: str,
    column: ColumnSpec,
    include_default: bool = True,
) -> Statement:
    """Build ADD COLUMN IF NOT EXISTS.

    The column is always added as nullable; NOT NULL is enforced later,
    after existing rows have been backfilled.

    Args:
        namespace: Target namespace.
        table: Target table.
        column: Column to add.
        include_default: Attach the declared default. PostgreSQL writes the
            default into every existing row, so a column that is about to
            receive data from an obsolete column is added without it.
    """
    definition = column_definition(column, include_not_null=False, include_default=include_default)
    return Statement(
        sql=f"ALTER TABLE {_qualified(namespace, table)} ADD COLUMN IF NOT EXISTS {definition}",
        kind=ChangeKind.ADD_COLUMN,
        table=table,
        column=column.name,
        detail=f"add column {column.name} {column.data_type}",
    )


def backfill_renamed_column(
    namespace: str,
    table: str,
    obsolete: str,
    replacement: ColumnSpec,
) -> Statement:
    """Copy data from an obsolete column into its replacement.

    Only rows where the replacement is still NULL are touched, so values
    already present in the replacement column always win.
    """
    obsolete_name = quote_identifier(obsolete)
    replacement_name = quote_identifier(replacement.name)
    return Statement(
        sql=(
            f"UPDATE {_qualified(namespace, table)} "
            f"SET {replacement_name} = CAST({obsolete_name} AS {replacement.data_type}) "
            f"WHERE {replacement_name} IS NULL AND {obsolete_name} IS NOT NULL"
        ),
        kind=ChangeKind.BACKFILL_RENAMED,
        table=table,
        column=replacement.name,
        detail=f"copy {obsolete} into {replacement.name}",
    )


def drop_column(namespace: str, table: str, column: str) -> Statement:
    return Statement(
        sql=f"ALTER TABLE {_qualified(namespace, table)} DROP COLUMN IF EXISTS {quote_identifier(column)}",
        kind=ChangeKind.DROP_COLUMN,
        table=table,
        column=column,
        detail=f"drop obsolete column {column}",
    )


def backfill_nulls(namespace: str, table: str, column: str, value: str) -> Statement:
    """Replace NULLs in a column with a static catalog expression."""
    name = quote_identifier(column)
    return Statement(
        sql=f"UPDATE {_qualified(namespace, table)} SET {name} = {value} WHERE {name} IS NULL",
        kind=ChangeKind.BACKFILL_NULLS,
        table=table,
        column=column,
        detail=f"fill NULLs in {column} with {value}",
    )


def set_not_null(namespace: str, table: str, column: str) -> Statement:
    return Statement(
        sql=f"ALTER TABLE {_qualified(namespace, table)} ALTER COLUMN {quote_identifier(column)} SET NOT NULL",
        kind=ChangeKind.SET_NOT_NULL,
        table=table,
        column=column,
        detail=f"set {column} NOT NULL",
    )


def drop_not_null(namespace: str, table: str, column: str) -> Statement:
    return Statement(
        sql=f"ALTER TABLE {_qualified(namespace, table)} ALTER COLUMN {quote_identifier(column)} DROP NOT NULL",
        kind=ChangeKind.DROP_NOT_NULL,
        table=table,
        column=column,
        detail=f"allow NULLs in {column}",
    )


def set_default(namespace: str, table: str, column: ColumnSpec) -> Statement:
    return Statement(
        sql=(
            f"ALTER TABLE {_qualified(namespace, table)} "
            f"ALTER COLUMN {quote_identifier(column.name)} SET DEFAULT {column.default}"
        ),
        kind=ChangeKind.SET_DEFAULT,
        table=table,
        column=column.name,
        detail=f"set default of {column.name} to {column.default}",
    )


def drop_default(namespace: str, table: str, column: str) -> Statement:
    return Statement(
        sql=f"ALTER TABLE {_qualified(namespace, table)} ALTER COLUMN {quote_identifier(column)} DROP DEFAULT",
        kind=ChangeKind.DROP_DEFAULT,
        table=table,
        column=column,
        detail=f"drop default of {column}",
    )
