# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Core package for the tenant schema aligner.

This package contains the database-independent building blocks:
- config: Application configuration and settings
- schema: Namespace naming, the table catalog and SQL statement builders
"""
