"""Tenant Schema Aligner.

Provisions PostgreSQL schemas for new tenants and keeps the schemas of
existing tenants structurally aligned with one canonical table catalog.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
