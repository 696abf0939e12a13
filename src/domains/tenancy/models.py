# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Result types for tenant provisioning and alignment."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from src.core.schema.statements import AppliedChange


class Outcome(str, Enum):
    """Final state of one tenant in a batch run."""

    CREATED = "created"
    ALIGNED = "aligned"
    SKIPPED = "skipped"
    FAILED = "failed"


class NoticeKind(str, Enum):
    """Informational findings that need an operator decision."""

    UNMAPPED_OBSOLETE_COLUMN = "unmapped_obsolete_column"
    TYPE_MISMATCH = "type_mismatch"
    MISSING_FILL_VALUE = "missing_fill_value"


@dataclass(frozen=True)
class Notice:
    """A finding reported to the operator. Never an error.

    Attributes:
        kind: What was found.
        table: Affected table.
        column: Affected column.
        message: Human-readable description.
    """

    kind: NoticeKind
    table: str
    column: Optional[str]
    message: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "kind": self.kind.value,
            "table": self.table,
            "column": self.column,
            "message": self.message,
        }


@dataclass
class AlignmentResult:
    """Outcome of processing one tenant.

    Attributes:
        tenant_id: Tenant identifier from the registry.
        namespace: Resolved namespace, None if it could not be resolved.
        outcome: Final state.
        changes: Changes applied (or planned) in order, including those
            applied before a failure.
        error: Failure or skip reason.
        notices: Findings that need an operator decision.
        failed_tables: Per table, the error that aborted its alignment.
        namespace_derived: True when the namespace was derived from the
            tenant id rather than taken from the registry.
        duration_seconds: Wall time spent on the tenant.
    """

    tenant_id: str
    namespace: Optional[str]
    outcome: Outcome
    changes: list[AppliedChange] = field(default_factory=list)
    error: Optional[str] = None
    notices: list[Notice] = field(default_factory=list)
    failed_tables: dict[str, str] = field(default_factory=dict)
    namespace_derived: bool = False
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        """Check whether the tenant ended in a non-failed state."""
        return self.outcome != Outcome.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "tenant_id": self.tenant_id,
            "namespace": self.namespace,
            "outcome": self.outcome.value,
            "error": self.error,
            "failed_tables": dict(self.failed_tables),
            "namespace_derived": self.namespace_derived,
            "duration_seconds": round(self.duration_seconds, 3),
            "changes": [change.to_dict() for change in self.changes],
            "notices": [notice.to_dict() for notice in self.notices],
        }
