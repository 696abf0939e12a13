# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Exceptions raised by the tenant schema engine.

Every per-tenant error is caught at the tenant boundary by the batch
runner and converted into a FAILED or SKIPPED result. RegistryError is
the only one allowed to abort a whole run.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from src.core.schema.statements import Statement


class SchemaEngineError(Exception):
    """Base exception for schema provisioning and alignment.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying exception, if any.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the error.

        Args:
            message: Human-readable error description.
            original_error: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        """Return string representation of the error."""
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class InvalidTenantIdentifierError(SchemaEngineError):
    """Raised when no safe namespace name can be derived for a tenant.

    Attributes:
        tenant_id: The offending tenant identifier.
    """

    def __init__(self, tenant_id: object) -> None:
        super().__init__(f"Tenant identifier yields no usable namespace name: {tenant_id!r}")
        self.tenant_id = tenant_id


class CatalogError(SchemaEngineError):
    """Raised when a table catalog definition is inconsistent."""


class IntrospectionError(SchemaEngineError):
    """Raised when the live schema cannot be read (connection or permission failure).

    A missing table is not an introspection error.

    Attributes:
        namespace: The namespace being inspected.
    """

    def __init__(self, namespace: str, original_error: Optional[Exception] = None) -> None:
        super().__init__(f"Failed to introspect namespace {namespace}", original_error)
        self.namespace = namespace


class StatementExecutionError(SchemaEngineError):
    """Raised when a single DDL/DML statement fails.

    Attributes:
        statement: The statement that failed.
    """

    def __init__(self, statement: "Statement", original_error: Optional[Exception] = None) -> None:
        super().__init__(
            f"Statement failed ({statement.kind.value} on {statement.table})",
            original_error,
        )
        self.statement = statement


class RegistryError(SchemaEngineError):
    """Raised when the tenant registry cannot be read."""
