# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Summary of a batch run.

The report is a pure projection of the per-tenant results: counts per
outcome, failures with their messages, and what changed where. It can
be rendered for a terminal with rich or serialized to JSON.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from src.domains.tenancy.models import AlignmentResult, Outcome

_OUTCOME_STYLES = {
    Outcome.CREATED: "green",
    Outcome.ALIGNED: "cyan",
    Outcome.SKIPPED: "yellow",
    Outcome.FAILED: "bold red",
}


@dataclass
class AlignmentReport:
    """Operator-facing summary of a batch run.

    Attributes:
        results: Per-tenant results in registry order.
        counts: Number of tenants per outcome.
        catalog_version: Catalog version the run aligned against.
        dry_run: Whether changes were only planned.
        generated_at: When the report was built.
    """

    results: list[AlignmentResult]
    counts: dict[Outcome, int]
    catalog_version: Optional[str] = None
    dry_run: bool = False
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def failures(self) -> list[AlignmentResult]:
        """Failed tenants in registry order."""
        return [result for result in self.results if result.outcome == Outcome.FAILED]

    @property
    def total_changes(self) -> int:
        return sum(len(result.changes) for result in self.results)

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 unless at least one tenant failed."""
        return 1 if self.failures else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "catalog_version": self.catalog_version,
            "dry_run": self.dry_run,
            "generated_at": self.generated_at.isoformat(),
            "exit_code": self.exit_code,
            "counts": {outcome.value: self.counts.get(outcome, 0) for outcome in Outcome},
            "total_changes": self.total_changes,
            "tenants": [result.to_dict() for result in self.results],
        }


class AlignmentReporter:
    """Builds and renders alignment reports."""

    def summarize(
        self,
        results: Sequence[AlignmentResult],
        catalog_version: Optional[str] = None,
        dry_run: bool = False,
    ) -> AlignmentReport:
        """Summarize per-tenant results.

        Args:
            results: Results in registry order.
            catalog_version: Catalog version, included in the report.
            dry_run: Whether the run only planned changes.

        Returns:
            The report. Results are not modified.
        """
        counts = {outcome: 0 for outcome in Outcome}
        for result in results:
            counts[result.outcome] += 1

        return AlignmentReport(
            results=list(results),
            counts=counts,
            catalog_version=catalog_version,
            dry_run=dry_run,
        )

    def render(self, report: AlignmentReport, console: Console) -> None:
        """Print the report as tables.

        Args:
            report: Report to render.
            console: rich console to print to.
        """
        title = "Tenant Schema Alignment"
        if report.catalog_version:
            title += f" (catalog {report.catalog_version})"
        if report.dry_run:
            title += " (dry run)"

        table = Table(title=title)
        table.add_column("Tenant", style="cyan")
        table.add_column("Namespace")
        table.add_column("Outcome", style="bold")
        table.add_column("Changes", justify="right")
        table.add_column("Notices", justify="right")
        table.add_column("Time", justify="right")

        for result in report.results:
            style = _OUTCOME_STYLES[result.outcome]
            namespace = result.namespace or "-"
            if result.namespace_derived:
                namespace += " (derived)"
            table.add_row(
                escape(result.tenant_id),
                namespace,
                f"[{style}]{result.outcome.value}[/{style}]",
                str(len(result.changes)),
                str(len(result.notices)),
                f"{result.duration_seconds:.2f}s",
            )

        console.print(table)

        changed = [result for result in report.results if result.changes]
        if changed:
            console.print("\n[bold]Changes[/bold]")
            for result in changed:
                console.print(f"  [cyan]{escape(result.tenant_id)}[/cyan] ({result.namespace})")
                for change in result.changes:
                    target = ".".join(part for part in (change.table, change.column) if part)
                    rows = f" ({change.rows_affected} rows)" if change.rows_affected else ""
                    console.print(f"    {change.kind.value:<16} {target or '-'}{rows}")

        noticed = [result for result in report.results if result.notices]
        if noticed:
            console.print("\n[bold yellow]Notices[/bold yellow]")
            for result in noticed:
                for notice in result.notices:
                    console.print(f"  {escape(result.tenant_id)}: {notice.table}.{notice.column}: {escape(notice.message)}")

        if report.failures:
            console.print("\n[bold red]Failures[/bold red]")
            for result in report.failures:
                console.print(f"  [red]✗[/red] {escape(result.tenant_id)}: {escape(result.error or '')}")
                for table_name, message in result.failed_tables.items():
                    console.print(f"      {table_name}: {escape(message)}")

        summary = " | ".join(
            f"{outcome.value}: {report.counts.get(outcome, 0)}" for outcome in Outcome
        )
        console.print(f"\n[bold]Total: {len(report.results)}[/bold] | {summary}")
