# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Canonical tenant table catalog.

Every tenant namespace contains these tables. To evolve the structure,
edit the specs below and bump CATALOG_VERSION; the next alignment run
brings every tenant in line. Renamed columns go into RENAMES so their
data is carried over before the old column is dropped.
"""

from src.core.schema.catalog import ColumnSpec, IndexSpec, TableSpec, TableSpecCatalog

CATALOG_VERSION = "2025.10.2"

_EMPTY_JSON_ARRAY = "'[]'::jsonb"
_EMPTY_JSON_OBJECT = "'{}'::jsonb"


def _id() -> ColumnSpec:
    return ColumnSpec("id", "UUID", nullable=False, default="gen_random_uuid()")


def _timestamps() -> tuple[ColumnSpec, ...]:
    return (
        ColumnSpec("created_at", "TIMESTAMPTZ", nullable=False, default="now()"),
        ColumnSpec("updated_at", "TIMESTAMPTZ", nullable=False, default="now()"),
        ColumnSpec("is_active", "BOOLEAN", nullable=False, default="true"),
    )


def _audit() -> tuple[ColumnSpec, ...]:
    return (ColumnSpec("created_by", "VARCHAR(255)", nullable=False), *_timestamps())


CLIENTS = TableSpec(
    name="clients",
    columns=(
        _id(),
        ColumnSpec("name", "VARCHAR(255)", nullable=False),
        ColumnSpec("organization", "VARCHAR(255)"),
        ColumnSpec("email", "VARCHAR(255)"),
        ColumnSpec("phone", "VARCHAR(50)"),
        ColumnSpec("country", "VARCHAR(2)", default="'BR'"),
        ColumnSpec("state", "VARCHAR(100)"),
        ColumnSpec("city", "VARCHAR(100)"),
        ColumnSpec("address", "TEXT"),
        ColumnSpec("zip_code", "VARCHAR(20)"),
        ColumnSpec("budget", "DECIMAL(15,2)"),
        ColumnSpec("currency", "VARCHAR(3)", nullable=False, default="'BRL'"),
        ColumnSpec("level", "VARCHAR(50)"),
        ColumnSpec("tags", "JSONB", nullable=False, default=_EMPTY_JSON_ARRAY),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("notes", "TEXT"),
        ColumnSpec("cpf", "VARCHAR(20)"),
        ColumnSpec("rg", "VARCHAR(20)"),
        ColumnSpec("pis", "VARCHAR(20)"),
        ColumnSpec("cei", "VARCHAR(20)"),
        ColumnSpec("professional_title", "VARCHAR(255)"),
        ColumnSpec("marital_status", "VARCHAR(50)"),
        ColumnSpec("birth_date", "DATE"),
        ColumnSpec("inss_status", "VARCHAR(50)"),
        ColumnSpec("amount_paid", "DECIMAL(15,2)", default="0"),
        ColumnSpec("referred_by", "VARCHAR(255)"),
        ColumnSpec("registered_by", "VARCHAR(255)"),
        ColumnSpec("status", "VARCHAR(50)", nullable=False, default="'active'"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("idx_clients_email", ("email",)),
        IndexSpec("idx_clients_status", ("status",)),
        IndexSpec("idx_clients_active", ("is_active",)),
    ),
)

DEALS = TableSpec(
    name="deals",
    columns=(
        _id(),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("contact_name", "VARCHAR(255)", nullable=False),
        ColumnSpec("organization", "VARCHAR(255)"),
        ColumnSpec("email", "VARCHAR(255)"),
        ColumnSpec("phone", "VARCHAR(50)"),
        ColumnSpec("address", "TEXT"),
        ColumnSpec("budget", "DECIMAL(15,2)"),
        ColumnSpec("currency", "VARCHAR(3)", nullable=False, default="'BRL'"),
        ColumnSpec("stage", "VARCHAR(50)", nullable=False, default="'contacted'"),
        ColumnSpec("tags", "JSONB", nullable=False, default=_EMPTY_JSON_ARRAY),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("registered_by", "VARCHAR(255)"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("idx_deals_stage", ("stage",)),
        IndexSpec("idx_deals_client_id", ("client_id",)),
        IndexSpec("idx_deals_active", ("is_active",)),
    ),
)

PROJECTS = TableSpec(
    name="projects",
    columns=(
        _id(),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("client_name", "VARCHAR(255)", nullable=False),
        ColumnSpec("organization", "VARCHAR(255)"),
        ColumnSpec("address", "TEXT"),
        ColumnSpec("budget", "DECIMAL(15,2)"),
        ColumnSpec("currency", "VARCHAR(3)", default="'BRL'"),
        ColumnSpec("status", "VARCHAR(50)", nullable=False, default="'contacted'"),
        ColumnSpec("priority", "VARCHAR(20)", nullable=False, default="'medium'"),
        ColumnSpec(
            "progress",
            "INTEGER",
            default="0",
            check="progress >= 0 AND progress <= 100",
        ),
        ColumnSpec("start_date", "DATE", nullable=False, default="CURRENT_DATE"),
        ColumnSpec("due_date", "DATE", nullable=False, default="CURRENT_DATE"),
        ColumnSpec("completed_at", "TIMESTAMPTZ"),
        ColumnSpec("tags", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("assigned_to", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("contacts", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("notes", "TEXT"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("idx_projects_status", ("status",)),
        IndexSpec("idx_projects_client_id", ("client_id",)),
        IndexSpec("idx_projects_due_date", ("due_date",)),
        IndexSpec("idx_projects_active", ("is_active",)),
    ),
)

TASKS = TableSpec(
    name="tasks",
    columns=(
        _id(),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("project_id", "UUID"),
        ColumnSpec("project_title", "VARCHAR(255)"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("client_name", "VARCHAR(255)"),
        ColumnSpec("assigned_to", "VARCHAR(255)"),
        ColumnSpec(
            "status",
            "VARCHAR(50)",
            nullable=False,
            default="'not_started'",
            check="status IN ('not_started', 'in_progress', 'completed', 'on_hold', 'cancelled')",
        ),
        ColumnSpec(
            "priority",
            "VARCHAR(20)",
            nullable=False,
            default="'medium'",
            check="priority IN ('low', 'medium', 'high', 'urgent')",
        ),
        ColumnSpec("start_date", "DATE"),
        ColumnSpec("end_date", "DATE"),
        ColumnSpec("estimated_hours", "DECIMAL(5,2)"),
        ColumnSpec("actual_hours", "DECIMAL(5,2)"),
        ColumnSpec(
            "progress",
            "INTEGER",
            nullable=False,
            default="0",
            check="progress >= 0 AND progress <= 100",
        ),
        ColumnSpec("tags", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("subtasks", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("notes", "TEXT"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("idx_tasks_assigned_to", ("assigned_to",)),
        IndexSpec("idx_tasks_status", ("status",)),
        IndexSpec("idx_tasks_priority", ("priority",)),
        IndexSpec("idx_tasks_project_id", ("project_id",)),
        IndexSpec("idx_tasks_client_id", ("client_id",)),
        IndexSpec("idx_tasks_created_by", ("created_by",)),
        IndexSpec("idx_tasks_active", ("is_active",)),
    ),
)

TRANSACTIONS = TableSpec(
    name="transactions",
    columns=(
        _id(),
        ColumnSpec("description", "VARCHAR(255)", nullable=False),
        ColumnSpec("amount", "DECIMAL(15,2)", nullable=False),
        ColumnSpec(
            "type",
            "VARCHAR(20)",
            nullable=False,
            check="type IN ('income', 'expense')",
            fill="'expense'",
        ),
        ColumnSpec("category_id", "VARCHAR(255)"),
        ColumnSpec("category", "VARCHAR(100)"),
        ColumnSpec("date", "DATE", nullable=False),
        ColumnSpec("payment_method", "VARCHAR(50)"),
        ColumnSpec("status", "VARCHAR(20)", nullable=False, default="'confirmed'"),
        ColumnSpec("project_id", "UUID"),
        ColumnSpec("project_title", "VARCHAR(255)"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("client_name", "VARCHAR(255)"),
        ColumnSpec("tags", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("notes", "TEXT"),
        ColumnSpec("is_recurring", "BOOLEAN", nullable=False, default="false"),
        ColumnSpec("recurring_frequency", "VARCHAR(20)"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("idx_transactions_type", ("type",)),
        IndexSpec("idx_transactions_date", ("date",)),
        IndexSpec("idx_transactions_active", ("is_active",)),
    ),
)

INVOICES = TableSpec(
    name="invoices",
    columns=(
        _id(),
        ColumnSpec("number", "VARCHAR(50)", nullable=False),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("client_name", "VARCHAR(255)", nullable=False),
        ColumnSpec("client_email", "VARCHAR(255)"),
        ColumnSpec("client_phone", "VARCHAR(50)"),
        ColumnSpec("project_id", "UUID"),
        ColumnSpec("project_name", "VARCHAR(255)"),
        ColumnSpec("amount", "DECIMAL(15,2)", nullable=False),
        ColumnSpec("currency", "VARCHAR(3)", default="'BRL'"),
        ColumnSpec("status", "VARCHAR(20)", nullable=False, default="'draft'"),
        ColumnSpec("due_date", "DATE", nullable=False),
        ColumnSpec("items", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("tags", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("notes", "TEXT"),
        ColumnSpec("payment_status", "VARCHAR(20)", default="'pending'"),
        ColumnSpec("payment_method", "VARCHAR(50)"),
        ColumnSpec("payment_date", "DATE"),
        ColumnSpec("email_sent", "BOOLEAN", default="false"),
        ColumnSpec("email_sent_at", "TIMESTAMPTZ"),
        ColumnSpec("reminders_sent", "INTEGER", default="0"),
        ColumnSpec("last_reminder_at", "TIMESTAMPTZ"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("uq_invoices_number", ("number",), unique=True),
        IndexSpec("idx_invoices_status", ("status",)),
        IndexSpec("idx_invoices_payment_status", ("payment_status",)),
        IndexSpec("idx_invoices_due_date", ("due_date",)),
        IndexSpec("idx_invoices_active", ("is_active",)),
    ),
)

ESTIMATES = TableSpec(
    name="estimates",
    columns=(
        _id(),
        ColumnSpec("number", "VARCHAR(50)", nullable=False),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("client_id", "UUID"),
        ColumnSpec("client_name", "VARCHAR(255)", nullable=False),
        ColumnSpec("client_email", "VARCHAR(255)"),
        ColumnSpec("client_phone", "VARCHAR(50)"),
        ColumnSpec("amount", "DECIMAL(15,2)", nullable=False),
        ColumnSpec("currency", "VARCHAR(3)", default="'BRL'"),
        ColumnSpec("status", "VARCHAR(20)", nullable=False, default="'draft'"),
        ColumnSpec("date", "DATE", nullable=False, default="CURRENT_DATE"),
        ColumnSpec("valid_until", "DATE"),
        ColumnSpec("items", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("tags", "JSONB", default=_EMPTY_JSON_ARRAY),
        ColumnSpec("notes", "TEXT"),
        ColumnSpec("converted_to_invoice", "BOOLEAN", default="false"),
        ColumnSpec("invoice_id", "VARCHAR(255)"),
        ColumnSpec("email_sent", "BOOLEAN", default="false"),
        ColumnSpec("email_sent_at", "TIMESTAMPTZ"),
        ColumnSpec("reminders_sent", "INTEGER", default="0"),
        ColumnSpec("last_reminder_at", "TIMESTAMPTZ"),
        *_audit(),
    ),
    indexes=(
        IndexSpec("uq_estimates_number", ("number",), unique=True),
        IndexSpec("idx_estimates_status", ("status",)),
        IndexSpec("idx_estimates_active", ("is_active",)),
    ),
)

NOTIFICATIONS = TableSpec(
    name="notifications",
    columns=(
        _id(),
        ColumnSpec("user_id", "VARCHAR(255)", nullable=False),
        ColumnSpec("actor_id", "VARCHAR(255)"),
        ColumnSpec(
            "type",
            "VARCHAR(20)",
            nullable=False,
            default="'system'",
            check="type IN ('task', 'invoice', 'system', 'client', 'project')",
        ),
        ColumnSpec("title", "VARCHAR(255)", nullable=False),
        ColumnSpec("message", "TEXT", nullable=False),
        ColumnSpec("payload", "JSONB"),
        ColumnSpec("link", "VARCHAR(500)"),
        ColumnSpec("read", "BOOLEAN", nullable=False, default="false"),
        *_timestamps(),
    ),
    indexes=(
        IndexSpec("idx_notifications_user_id", ("user_id",)),
        IndexSpec("idx_notifications_unread", ("user_id", "read")),
    ),
)

PUBLICATIONS = TableSpec(
    name="publications",
    columns=(
        _id(),
        ColumnSpec("user_id", "VARCHAR(255)", nullable=False),
        ColumnSpec("oab_number", "VARCHAR(50)", nullable=False),
        ColumnSpec("process_number", "VARCHAR(100)"),
        ColumnSpec("publication_date", "DATE", nullable=False, default="CURRENT_DATE"),
        ColumnSpec("content", "TEXT", nullable=False),
        ColumnSpec("source", "VARCHAR(50)", nullable=False),
        ColumnSpec("external_id", "VARCHAR(255)"),
        ColumnSpec("status", "VARCHAR(20)", nullable=False, default="'nova'"),
        ColumnSpec("urgencia", "VARCHAR(20)", default="'media'"),
        ColumnSpec("responsavel", "VARCHAR(255)"),
        ColumnSpec("observacoes", "TEXT"),
        ColumnSpec("metadata", "JSONB", nullable=False, default=_EMPTY_JSON_OBJECT),
        *_timestamps(),
    ),
    indexes=(
        IndexSpec("idx_publications_user_id", ("user_id",)),
        IndexSpec("idx_publications_oab_number", ("oab_number",)),
        IndexSpec("idx_publications_status", ("status",)),
        IndexSpec("idx_publications_date", ("publication_date",)),
        IndexSpec("idx_publications_active", ("is_active",)),
        IndexSpec("uq_publications_user_external", ("user_id", "external_id"), unique=True),
    ),
)

CATEGORIES = TableSpec(
    name="categories",
    columns=(
        _id(),
        ColumnSpec("name", "VARCHAR(255)", nullable=False),
        ColumnSpec(
            "type",
            "VARCHAR(20)",
            nullable=False,
            check="type IN ('income', 'expense')",
            fill="'expense'",
        ),
        ColumnSpec("color", "VARCHAR(7)", default="'#000000'"),
        ColumnSpec("description", "TEXT"),
        ColumnSpec("created_by", "VARCHAR(255)"),
        *_timestamps(),
    ),
    indexes=(
        IndexSpec("idx_categories_type", ("type",)),
        IndexSpec("idx_categories_active", ("is_active",)),
    ),
)

# Historical renames performed by hand in earlier releases.
RENAMES: dict[str, dict[str, str]] = {
    "clients": {"cpf_cnpj": "cpf"},
    "projects": {
        "name": "title",
        "contact_name": "client_name",
        "end_date": "due_date",
        "estimated_value": "budget",
        "stage": "status",
    },
    "tasks": {"due_date": "end_date"},
}

CATALOG = TableSpecCatalog(
    version=CATALOG_VERSION,
    tables=(
        CLIENTS,
        DEALS,
        PROJECTS,
        TASKS,
        TRANSACTIONS,
        INVOICES,
        ESTIMATES,
        NOTIFICATIONS,
        PUBLICATIONS,
        CATEGORIES,
    ),
    renames=RENAMES,
)
