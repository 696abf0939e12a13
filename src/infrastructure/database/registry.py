# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Read access to the tenant registry.

The registry is the control-plane table listing every tenant. Its
location and column names are configurable because it is owned by the
application, not by this engine. Access is strictly read-only.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import column, select, table
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from src.core.schema.errors import RegistryError

if TYPE_CHECKING:
    from src.core.config.settings import RegistrySettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tenant:
    """A registry entry.

    Attributes:
        id: Opaque tenant identifier (usually a UUID).
        namespace_name: Namespace recorded in the registry, if any.
        active: Whether the tenant is active.
        name: Display name.
        created_at: Registration time.
    """

    id: str
    namespace_name: Optional[str] = None
    active: bool = True
    name: Optional[str] = None
    created_at: Optional[datetime] = None


class TenantRegistry:
    """Loads tenants from the registry table.

    Example:
        registry = TenantRegistry(engine, settings.registry)
        tenants = await registry.list_tenants()
    """

    def __init__(self, engine: AsyncEngine, settings: "RegistrySettings") -> None:
        """Initialize the registry reader.

        Args:
            engine: Engine for the database holding the registry table.
            settings: Registry location and column names.
        """
        self._engine = engine
        self._settings = settings

        self._table = table(
            settings.table,
            column(settings.id_column),
            column(settings.namespace_column),
            column(settings.active_column),
            column(settings.created_column),
            column(settings.name_column),
            schema=settings.schema_name,
        )

    def _query(self):
        s = self._settings
        c = self._table.c
        return select(
            c[s.id_column].label("id"),
            c[s.namespace_column].label("namespace_name"),
            c[s.active_column].label("active"),
            c[s.name_column].label("name"),
            c[s.created_column].label("created_at"),
        ).order_by(c[s.created_column].asc().nulls_last(), c[s.id_column].asc())

    async def list_tenants(self) -> list[Tenant]:
        """Load every tenant ordered by creation time, oldest first.

        Returns:
            Tenants in registry order.

        Raises:
            RegistryError: If the registry cannot be read.
        """
        try:
            async with self._engine.connect() as conn:
                rows = (await conn.execute(self._query())).all()
        except (SQLAlchemyError, OSError) as e:
            raise RegistryError(
                f"Failed to read tenant registry {self._settings.schema_name}.{self._settings.table}",
                e,
            ) from e

        tenants = [
            Tenant(
                id=str(row.id),
                namespace_name=row.namespace_name,
                # A NULL flag is treated as active; only an explicit false disables
                active=row.active is not False,
                name=row.name,
                created_at=row.created_at,
            )
            for row in rows
        ]
        logger.info("Loaded %d tenants from registry", len(tenants))
        return tenants
