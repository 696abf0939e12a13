# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Unit tests for SQL statement builders and normalization."""

import pytest

from src.core.schema import statements
from src.core.schema.catalog import ColumnSpec, IndexSpec, TableSpec
from src.core.schema.statements import (
    ChangeKind,
    base_type,
    normalize_default,
    normalize_type,
    null_fill_expression,
)


class TestNormalizeType:
    """Tests for normalize_type."""

    @pytest.mark.parametrize(
        ("catalog_type", "live_type"),
        [
            ("VARCHAR(255)", "character varying(255)"),
            ("DECIMAL(15,2)", "numeric(15,2)"),
            ("DECIMAL(15, 2)", "numeric(15,2)"),
            ("NUMERIC", "numeric"),
            ("TIMESTAMPTZ", "timestamp with time zone"),
            ("TIMESTAMP", "timestamp without time zone"),
            ("INTEGER", "integer"),
            ("BOOLEAN", "boolean"),
            ("JSONB", "jsonb"),
            ("UUID", "uuid"),
            ("DATE", "date"),
            ("TEXT", "text"),
        ],
    )
    def test_catalog_and_live_renderings_match(self, catalog_type: str, live_type: str) -> None:
        """Test that catalog types normalize to information_schema names."""
        assert normalize_type(catalog_type) == normalize_type(live_type)

    def test_different_types_differ(self) -> None:
        """Test that a real type difference is preserved."""
        assert normalize_type("TIMESTAMPTZ") != normalize_type("timestamp without time zone")
        assert normalize_type("TEXT") != normalize_type("character varying")

    def test_length_and_precision_are_compared(self) -> None:
        """Test that a changed length or precision is visible."""
        assert normalize_type("DECIMAL(15,2)") != normalize_type("numeric(12,2)")
        assert normalize_type("VARCHAR(255)") != normalize_type("character varying(100)")

    def test_base_type_drops_modifier(self) -> None:
        """Test that base_type ignores length and precision."""
        assert base_type("DECIMAL(15,2)") == base_type("numeric(12,2)") == "numeric"
        assert base_type("VARCHAR(255)") == "character varying"


class TestNormalizeDefault:
    """Tests for normalize_default."""

    @pytest.mark.parametrize(
        ("catalog_default", "live_default"),
        [
            ("'BRL'", "'BRL'::character varying"),
            ("'[]'::jsonb", "'[]'::jsonb"),
            ("now()", "now()"),
            ("CURRENT_DATE", "CURRENT_DATE"),
            ("0", "0"),
            ("0", "(0)::numeric"),
            ("0", "0.00"),
            ("1.5", "'1.50'::numeric"),
            ("true", "true"),
            ("gen_random_uuid()", "gen_random_uuid()"),
            ("'#000000'", "'#000000'::character varying"),
        ],
    )
    def test_equivalent_defaults_match(self, catalog_default: str, live_default: str) -> None:
        """Test that PostgreSQL's rendering compares equal to the catalog's."""
        assert normalize_default(catalog_default) == normalize_default(live_default)

    def test_none(self) -> None:
        """Test that a missing default stays missing."""
        assert normalize_default(None) is None

    def test_different_values_differ(self) -> None:
        """Test that a changed default is detected."""
        assert normalize_default("'draft'") != normalize_default("'sent'::character varying")

    def test_literal_case_is_significant(self) -> None:
        """Test that a changed capitalization inside a literal is detected."""
        assert normalize_default("'BRL'") != normalize_default("'brl'::character varying")
        assert normalize_default("'Nova'") == "'Nova'"

    def test_keyword_case_is_ignored(self) -> None:
        """Test that function and keyword case does not matter outside literals."""
        assert normalize_default("NOW()") == normalize_default("now()")
        assert normalize_default("'BRL'::CHARACTER VARYING") == "'BRL'"

    def test_keeps_function_call_parentheses(self) -> None:
        """Test that only wrapping parentheses are removed."""
        assert normalize_default("(now())") == "now()"
        assert normalize_default("(1) + (2)") == "(1) + (2)"


class TestNullFillExpression:
    """Tests for null_fill_expression."""

    def test_declared_default_wins(self) -> None:
        """Test that the column default is used for backfill."""
        assert null_fill_expression(ColumnSpec("status", "VARCHAR(20)", False, "'draft'")) == "'draft'"

    def test_declared_fill_precedes_type_fallback(self) -> None:
        """Test that a declared fill value is used when there is no default."""
        column = ColumnSpec("type", "VARCHAR(20)", nullable=False, check="type IN ('a', 'b')", fill="'a'")

        assert null_fill_expression(column) == "'a'"

    def test_checked_column_gets_no_type_fallback(self) -> None:
        """Test that '' is never offered for a column whose CHECK it could violate."""
        column = ColumnSpec("type", "VARCHAR(20)", nullable=False, check="type IN ('a', 'b')")

        assert null_fill_expression(column) is None

    @pytest.mark.parametrize(
        ("data_type", "expected"),
        [
            ("VARCHAR(255)", "''"),
            ("TEXT", "''"),
            ("INTEGER", "0"),
            ("DECIMAL(15,2)", "0"),
            ("BOOLEAN", "false"),
            ("JSONB", "'[]'::jsonb"),
            ("DATE", "CURRENT_DATE"),
            ("TIMESTAMPTZ", "now()"),
            ("UUID", "gen_random_uuid()"),
        ],
    )
    def test_type_fallback(self, data_type: str, expected: str) -> None:
        """Test safe values for columns without a default."""
        assert null_fill_expression(ColumnSpec("c", data_type, nullable=False)) == expected

    def test_unknown_type(self) -> None:
        """Test that no value is invented for unknown types."""
        assert null_fill_expression(ColumnSpec("c", "INTERVAL", nullable=False)) is None


class TestBuilders:
    """Tests for statement builders."""

    def test_create_schema(self) -> None:
        """Test CREATE SCHEMA is idempotent and quoted."""
        statement = statements.create_schema("tenant_7b1c44d2")

        assert statement.sql == 'CREATE SCHEMA IF NOT EXISTS "tenant_7b1c44d2"'
        assert statement.kind == ChangeKind.CREATE_SCHEMA
        assert statement.params == {}

    def test_create_table(self, tasks_spec: TableSpec) -> None:
        """Test CREATE TABLE renders columns in declaration order with the primary key."""
        statement = statements.create_table("tenant_a", tasks_spec)

        assert statement.sql.startswith('CREATE TABLE IF NOT EXISTS "tenant_a"."tasks" (')
        assert '"id" UUID NOT NULL DEFAULT gen_random_uuid()' in statement.sql
        assert '"status" VARCHAR(50) NOT NULL DEFAULT \'not_started\'' in statement.sql
        assert 'PRIMARY KEY ("id")' in statement.sql
        assert statement.sql.index('"title"') < statement.sql.index('"end_date"')
        assert "REFERENCES" not in statement.sql

    def test_create_table_renders_check(self) -> None:
        """Test that CHECK constraints are part of the column definition."""
        spec = TableSpec(
            "transactions",
            (
                ColumnSpec("id", "UUID", nullable=False),
                ColumnSpec("type", "VARCHAR(20)", nullable=False, check="type IN ('income', 'expense')"),
            ),
        )

        statement = statements.create_table("tenant_a", spec)

        assert "\"type\" VARCHAR(20) NOT NULL CHECK (type IN ('income', 'expense'))" in statement.sql

    def test_create_index(self) -> None:
        """Test CREATE INDEX IF NOT EXISTS, plain and unique."""
        plain = statements.create_index("tenant_a", "tasks", IndexSpec("idx_tasks_status", ("status",)))
        unique = statements.create_index(
            "tenant_a", "invoices", IndexSpec("uq_invoices_number", ("number",), unique=True)
        )

        assert plain.sql == 'CREATE INDEX IF NOT EXISTS "idx_tasks_status" ON "tenant_a"."tasks" ("status")'
        assert unique.sql.startswith('CREATE UNIQUE INDEX IF NOT EXISTS "uq_invoices_number"')

    def test_add_column_is_never_not_null(self) -> None:
        """Test that columns are added nullable even when required."""
        column = ColumnSpec("currency", "VARCHAR(3)", nullable=False, default="'BRL'")

        statement = statements.add_column("tenant_a", "clients", column)

        assert statement.sql == (
            'ALTER TABLE "tenant_a"."clients" ADD COLUMN IF NOT EXISTS "currency" VARCHAR(3) DEFAULT \'BRL\''
        )
        assert "NOT NULL" not in statement.sql
        assert statement.column == "currency"

    def test_add_column_without_default(self) -> None:
        """Test that the default can be left off when the column is added."""
        column = ColumnSpec("due_date", "DATE", nullable=False, default="CURRENT_DATE")

        statement = statements.add_column("tenant_a", "projects", column, include_default=False)

        assert statement.sql == 'ALTER TABLE "tenant_a"."projects" ADD COLUMN IF NOT EXISTS "due_date" DATE'

    def test_backfill_renamed_column_keeps_existing_values(self) -> None:
        """Test that only NULL targets are filled from the obsolete column."""
        statement = statements.backfill_renamed_column(
            "tenant_a", "tasks", "due_date", ColumnSpec("end_date", "DATE")
        )

        assert statement.sql == (
            'UPDATE "tenant_a"."tasks" SET "end_date" = CAST("due_date" AS DATE) '
            'WHERE "end_date" IS NULL AND "due_date" IS NOT NULL'
        )
        assert statement.kind == ChangeKind.BACKFILL_RENAMED

    def test_drop_column(self) -> None:
        """Test DROP COLUMN IF EXISTS."""
        statement = statements.drop_column("tenant_a", "tasks", "due_date")

        assert statement.sql == 'ALTER TABLE "tenant_a"."tasks" DROP COLUMN IF EXISTS "due_date"'

    def test_nullability_and_defaults(self) -> None:
        """Test ALTER COLUMN statements."""
        column = ColumnSpec("status", "VARCHAR(50)", nullable=False, default="'active'")

        assert statements.backfill_nulls("n", "t", "status", "'active'").sql == (
            'UPDATE "n"."t" SET "status" = \'active\' WHERE "status" IS NULL'
        )
        assert statements.set_not_null("n", "t", "status").sql.endswith('ALTER COLUMN "status" SET NOT NULL')
        assert statements.drop_not_null("n", "t", "status").sql.endswith('ALTER COLUMN "status" DROP NOT NULL')
        assert statements.set_default("n", "t", column).sql.endswith("SET DEFAULT 'active'")
        assert statements.drop_default("n", "t", "status").sql.endswith("DROP DEFAULT")

    def test_unsafe_namespace_is_rejected(self, tasks_spec: TableSpec) -> None:
        """Test that an unsafe namespace never reaches SQL text."""
        with pytest.raises(ValueError):
            statements.create_table('x"; DROP SCHEMA public; --', tasks_spec)

    def test_set_lock_timeout(self) -> None:
        """Test the session lock timeout statement."""
        assert statements.set_lock_timeout(5000) == "SET lock_timeout = 5000"
