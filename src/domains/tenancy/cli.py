# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Command line entry point for tenant schema alignment.

Usage:
    align-tenant-schemas [--tenant-id ID] [--namespace NAME] [--include-inactive]
                         [--dry-run] [--concurrency N] [--timeout SECONDS] [--json]

Exit codes:
    0: every selected tenant was created, aligned or skipped
    1: at least one tenant failed
    2: the run could not start (registry or database unavailable)
"""

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from rich.console import Console

from src.core.config.settings import Settings, get_settings
from src.core.schema.errors import RegistryError
from src.core.schema.tables import CATALOG
from src.domains.tenancy.reporter import AlignmentReporter
from src.domains.tenancy.runner import align_all_tenants
from src.infrastructure.database.connection import DatabaseError
from src.utils.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="align-tenant-schemas",
        description="Provision missing tenant namespaces and align existing ones with the table catalog.",
    )
    parser.add_argument("--tenant-id", help="Process only this tenant")
    parser.add_argument("--namespace", help="Process only the tenant owning this namespace")
    parser.add_argument(
        "--include-inactive",
        action="store_true",
        help="Also process tenants flagged inactive in the registry",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the statements that would run without executing them",
    )
    parser.add_argument("--concurrency", type=int, help="Tenants processed at the same time")
    parser.add_argument("--timeout", type=float, help="Per-tenant time limit in seconds")
    parser.add_argument("--json", action="store_true", help="Print the report as JSON")
    return parser


def apply_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    """Overlay command line flags on the configured alignment settings."""
    update: dict[str, object] = {}
    if args.include_inactive:
        update["active_only"] = False
    if args.dry_run:
        update["dry_run"] = True
    if args.concurrency is not None:
        update["max_concurrency"] = args.concurrency
    if args.timeout is not None:
        update["tenant_timeout_seconds"] = args.timeout

    if not update:
        return settings
    return settings.model_copy(update={"alignment": settings.alignment.model_copy(update=update)})


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the alignment and return the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.concurrency is not None and args.concurrency < 1:
        parser.error("--concurrency must be at least 1")
    if args.timeout is not None and args.timeout <= 0:
        parser.error("--timeout must be greater than 0")

    settings = apply_overrides(get_settings(), args)
    setup_logging(settings)

    try:
        results = asyncio.run(
            align_all_tenants(
                settings,
                CATALOG,
                tenant_id=args.tenant_id,
                namespace=args.namespace,
            )
        )
    except (RegistryError, DatabaseError) as e:
        logger.error("alignment_aborted", error=str(e))
        print(f"ABORTED: {e}", file=sys.stderr)
        return 2
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return 2

    reporter = AlignmentReporter()
    report = reporter.summarize(results, catalog_version=CATALOG.version, dry_run=settings.alignment.dry_run)

    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        reporter.render(report, Console())

    return report.exit_code
