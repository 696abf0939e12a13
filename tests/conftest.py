# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Pytest configuration and shared fixtures.

This module provides fixtures used across all test types:
- Unit tests
- Integration tests
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from src.core.schema.catalog import ColumnSpec, IndexSpec, TableSpec, TableSpecCatalog
from src.infrastructure.database.executor import StatementExecutor
from src.infrastructure.database.registry import Tenant


# =============================================================================
# Marker Configuration
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test (requires PostgreSQL)"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )


# =============================================================================
# Catalog Fixtures
# =============================================================================


@pytest.fixture
def tasks_spec() -> TableSpec:
    """Provide a small tasks table spec."""
    return TableSpec(
        name="tasks",
        columns=(
            ColumnSpec("id", "UUID", nullable=False, default="gen_random_uuid()"),
            ColumnSpec("title", "VARCHAR(255)", nullable=False),
            ColumnSpec("status", "VARCHAR(50)", nullable=False, default="'not_started'"),
            ColumnSpec("end_date", "DATE"),
            ColumnSpec("notes", "TEXT"),
        ),
        indexes=(IndexSpec("idx_tasks_status", ("status",)),),
    )


@pytest.fixture
def notes_spec() -> TableSpec:
    """Provide a second, minimal table spec."""
    return TableSpec(
        name="notes",
        columns=(
            ColumnSpec("id", "UUID", nullable=False, default="gen_random_uuid()"),
            ColumnSpec("body", "TEXT"),
        ),
    )


@pytest.fixture
def small_catalog(tasks_spec: TableSpec, notes_spec: TableSpec) -> TableSpecCatalog:
    """Provide a two-table catalog with one historical rename."""
    return TableSpecCatalog(
        version="test-1",
        tables=(tasks_spec, notes_spec),
        renames={"tasks": {"due_date": "end_date"}},
    )


# =============================================================================
# Execution Fixtures
# =============================================================================


@pytest.fixture
def planning_executor() -> StatementExecutor:
    """Provide an executor that records statements without a database."""
    return StatementExecutor(MagicMock(), dry_run=True)


# =============================================================================
# Helper Fixtures
# =============================================================================


@pytest.fixture
def sample_tenant_id() -> str:
    """Provide a sample tenant ID for testing."""
    return "7b1c-44d2"


@pytest.fixture
def sample_tenants() -> list[Tenant]:
    """Provide three registry entries in creation order."""
    created = datetime(2025, 1, 1, tzinfo=timezone.utc)
    return [
        Tenant(id="550e8400-e29b-41d4-a716-446655440001", name="Acme", created_at=created),
        Tenant(id="550e8400-e29b-41d4-a716-446655440002", name="Globex", created_at=created),
        Tenant(id="550e8400-e29b-41d4-a716-446655440003", name="Initech", created_at=created),
    ]
