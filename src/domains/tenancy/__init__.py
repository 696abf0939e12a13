# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenancy domain package.

This package provisions and aligns tenant namespaces:
- SchemaProvisioner: Creates new namespaces from the catalog
- SchemaAligner: Brings existing namespaces in line with the catalog
- TenantBatchRunner: Processes every tenant with per-tenant isolation
- AlignmentReporter: Summarizes a batch run
"""

from src.domains.tenancy.aligner import AlignmentPass, SchemaAligner
from src.domains.tenancy.models import AlignmentResult, Notice, NoticeKind, Outcome
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.domains.tenancy.reporter import AlignmentReport, AlignmentReporter
from src.domains.tenancy.runner import TenantBatchRunner, align_all_tenants

__all__ = [
    "AlignmentPass",
    "AlignmentReport",
    "AlignmentReporter",
    "AlignmentResult",
    "Notice",
    "NoticeKind",
    "Outcome",
    "SchemaAligner",
    "SchemaProvisioner",
    "TenantBatchRunner",
    "align_all_tenants",
]
