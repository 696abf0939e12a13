# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Batch provisioning and alignment across all tenants.

The runner walks the tenant registry in order and, per tenant, resolves
the namespace, introspects it and either provisions it (absent) or
aligns it (present). Each tenant is an isolation boundary: whatever
happens to one tenant is captured in its result and the batch moves on.

Namespaces are claimed in registry order. A tenant whose namespace is
already claimed by an earlier tenant is reported as failed and never
touched, so one tenant can never alter another tenant's tables.

Example:
    >>> runner = TenantBatchRunner(engine, max_concurrency=4)
    >>> results = await runner.run(tenants, CATALOG)
    >>> [r.outcome for r in results]
    [<Outcome.CREATED: 'created'>, <Outcome.ALIGNED: 'aligned'>]
"""

import asyncio
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from src.core.schema.catalog import TableSpecCatalog
from src.core.schema.errors import InvalidTenantIdentifierError
from src.core.schema.naming import resolve_namespace
from src.core.schema.tables import CATALOG
from src.domains.tenancy.aligner import SchemaAligner
from src.domains.tenancy.models import AlignmentResult, Outcome
from src.domains.tenancy.provisioner import SchemaProvisioner
from src.infrastructure.database.connection import close_database, create_engine_for, get_engine, init_database
from src.infrastructure.database.executor import StatementExecutor
from src.infrastructure.database.introspection import CatalogIntrospector
from src.infrastructure.database.registry import Tenant, TenantRegistry
from src.utils.logging import bind_context, clear_context, get_logger

if TYPE_CHECKING:
    from src.core.config.settings import Settings

logger = get_logger(__name__)


@dataclass
class _PlannedTenant:
    tenant: Tenant
    namespace: Optional[str]
    namespace_derived: bool
    result: Optional[AlignmentResult] = None


class TenantBatchRunner:
    """Provisions or aligns every tenant namespace.

    Attributes:
        max_concurrency: Tenants processed at the same time.
        tenant_timeout_seconds: Per-tenant time limit, None for no limit.
        lock_timeout_ms: Session lock timeout applied to each tenant connection.
        dry_run: Plan statements without executing them.
        active_only: Report inactive tenants as skipped instead of processing them.
        tenant_id: Process only this tenant.
        namespace: Process only the tenant owning this namespace.
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        introspector: Optional[CatalogIntrospector] = None,
        provisioner: Optional[SchemaProvisioner] = None,
        max_concurrency: int = 1,
        tenant_timeout_seconds: Optional[float] = None,
        lock_timeout_ms: Optional[int] = None,
        dry_run: bool = False,
        active_only: bool = True,
        tenant_id: Optional[str] = None,
        namespace: Optional[str] = None,
    ) -> None:
        """Initialize the runner.

        Args:
            engine: Engine for the database holding the tenant namespaces.
                Each tenant gets its own connection from it.
            introspector: Introspector override, mainly for tests.
            provisioner: Provisioner override, mainly for tests.
            max_concurrency: Tenants processed at the same time (1 = sequential).
            tenant_timeout_seconds: Per-tenant time limit.
            lock_timeout_ms: Session lock timeout for DDL.
            dry_run: Plan statements without executing them.
            active_only: Skip tenants flagged inactive.
            tenant_id: Restrict the run to one tenant id.
            namespace: Restrict the run to one namespace.

        Raises:
            ValueError: If max_concurrency is lower than 1.
        """
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")

        self._engine = engine
        self.introspector = introspector or CatalogIntrospector()
        self.provisioner = provisioner or SchemaProvisioner()
        self.max_concurrency = max_concurrency
        self.tenant_timeout_seconds = tenant_timeout_seconds
        self.lock_timeout_ms = lock_timeout_ms
        self.dry_run = dry_run
        self.active_only = active_only
        self.tenant_id = tenant_id
        self.namespace = namespace

    async def run(
        self,
        tenants: Iterable[Tenant],
        catalog: TableSpecCatalog,
    ) -> list[AlignmentResult]:
        """Process tenants and collect one result per selected tenant.

        Args:
            tenants: Tenants in registry order.
            catalog: Catalog to provision and align against.

        Returns:
            Results in registry order. Tenants excluded by the tenant_id or
            namespace filters produce no result.
        """
        plans = self._plan(tenants)
        aligner = SchemaAligner(catalog, self.provisioner)
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def process(plan: _PlannedTenant) -> AlignmentResult:
            if plan.result is not None:
                return plan.result
            async with semaphore:
                return await self._process_tenant(plan, catalog, aligner)

        logger.info(
            "batch_started",
            tenants=len(plans),
            catalog_version=catalog.version,
            dry_run=self.dry_run,
            max_concurrency=self.max_concurrency,
        )
        results = list(await asyncio.gather(*(process(plan) for plan in plans)))
        logger.info(
            "batch_finished",
            tenants=len(results),
            failed=sum(1 for result in results if result.outcome == Outcome.FAILED),
        )
        return results

    def _plan(self, tenants: Iterable[Tenant]) -> list[_PlannedTenant]:
        """Resolve namespaces, detect collisions and apply filters.

        Every tenant claims its namespace in registry order, including
        inactive and filtered-out tenants, so a collision is detected
        regardless of which subset is being processed.
        """
        claimed: dict[str, str] = {}
        plans = []

        for tenant in tenants:
            plan = _PlannedTenant(tenant=tenant, namespace=None, namespace_derived=False)
            skip_reason = None
            try:
                plan.namespace = resolve_namespace(tenant.id, tenant.namespace_name)
                plan.namespace_derived = plan.namespace != tenant.namespace_name
            except InvalidTenantIdentifierError as e:
                skip_reason = str(e)

            owner = claimed.get(plan.namespace) if plan.namespace else None
            if plan.namespace and owner is None:
                claimed[plan.namespace] = tenant.id

            if self.tenant_id is not None and tenant.id != self.tenant_id:
                continue
            if self.namespace is not None and plan.namespace != self.namespace:
                continue

            if self.active_only and not tenant.active:
                plan.result = self._result(plan, Outcome.SKIPPED, "Tenant is inactive")
            elif skip_reason is not None:
                logger.warning("tenant_identifier_invalid", tenant_id=tenant.id, error=skip_reason)
                plan.result = self._result(plan, Outcome.SKIPPED, skip_reason)
            elif owner is not None:
                message = f"Namespace {plan.namespace} is already claimed by tenant {owner}"
                logger.error("namespace_collision", tenant_id=tenant.id, namespace=plan.namespace, owner=owner)
                plan.result = self._result(plan, Outcome.FAILED, message)

            plans.append(plan)

        return plans

    async def _process_tenant(
        self,
        plan: _PlannedTenant,
        catalog: TableSpecCatalog,
        aligner: SchemaAligner,
    ) -> AlignmentResult:
        """Process one tenant, converting every error into a FAILED result."""
        result = self._result(plan, Outcome.FAILED)
        bind_context(tenant_id=plan.tenant.id, namespace=plan.namespace)
        started = time.monotonic()
        try:
            await asyncio.wait_for(
                self._align_tenant(plan.namespace, catalog, aligner, result),
                timeout=self.tenant_timeout_seconds,
            )
        except asyncio.TimeoutError:
            result.outcome = Outcome.FAILED
            result.error = f"Timed out after {self.tenant_timeout_seconds}s"
            logger.error("tenant_timed_out", timeout_seconds=self.tenant_timeout_seconds)
        except Exception as e:
            result.outcome = Outcome.FAILED
            result.error = str(e)
            logger.exception("tenant_failed", error=str(e))
        else:
            logger.info(
                "tenant_processed",
                outcome=result.outcome.value,
                changes=len(result.changes),
                notices=len(result.notices),
            )
        finally:
            result.duration_seconds = time.monotonic() - started
            clear_context()
        return result

    async def _align_tenant(
        self,
        namespace: str,
        catalog: TableSpecCatalog,
        aligner: SchemaAligner,
        result: AlignmentResult,
    ) -> None:
        async with self._engine.connect() as conn:
            conn = await conn.execution_options(isolation_level="AUTOCOMMIT")
            executor = StatementExecutor(conn, dry_run=self.dry_run, lock_timeout_ms=self.lock_timeout_ms)
            # Shared list: changes applied before a failure or timeout stay visible
            result.changes = executor.applied

            state = await self.introspector.inspect(conn, namespace, catalog.table_names())
            if not state.namespace_exists:
                await self.provisioner.provision(executor, namespace, catalog.all_table_specs())
                result.outcome = Outcome.CREATED
                return

            alignment = await aligner.align(executor, namespace, catalog.all_table_specs(), state)
            result.notices = alignment.notices
            result.failed_tables = alignment.failures
            if alignment.failures:
                result.outcome = Outcome.FAILED
                result.error = f"Failed tables: {', '.join(sorted(alignment.failures))}"
            else:
                result.outcome = Outcome.ALIGNED

    @staticmethod
    def _result(plan: _PlannedTenant, outcome: Outcome, error: Optional[str] = None) -> AlignmentResult:
        return AlignmentResult(
            tenant_id=plan.tenant.id,
            namespace=plan.namespace,
            outcome=outcome,
            error=error,
            namespace_derived=plan.namespace_derived,
        )


async def align_all_tenants(
    settings: "Settings",
    catalog: TableSpecCatalog = CATALOG,
    *,
    tenant_id: Optional[str] = None,
    namespace: Optional[str] = None,
) -> Sequence[AlignmentResult]:
    """Load the registry and align every tenant with the catalog.

    Args:
        settings: Application settings.
        catalog: Catalog to align against.
        tenant_id: Restrict the run to one tenant id.
        namespace: Restrict the run to one namespace.

    Returns:
        One result per selected tenant, in registry order.

    Raises:
        RegistryError: If the tenant registry cannot be read.
        DatabaseError: If the database engine cannot be created.
    """
    await init_database(settings)
    engine = get_engine()
    registry_engine = create_engine_for(settings.registry.url, settings) if settings.registry.url else engine

    try:
        tenants = await TenantRegistry(registry_engine, settings.registry).list_tenants()

        runner = TenantBatchRunner(
            engine,
            max_concurrency=settings.alignment.max_concurrency,
            tenant_timeout_seconds=settings.alignment.tenant_timeout_seconds,
            lock_timeout_ms=settings.alignment.lock_timeout_ms,
            dry_run=settings.alignment.dry_run,
            active_only=settings.alignment.active_only,
            tenant_id=tenant_id,
            namespace=namespace,
        )
        return await runner.run(tenants, catalog)
    finally:
        if registry_engine is not engine:
            await registry_engine.dispose()
        await close_database()
