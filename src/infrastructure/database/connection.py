# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Database engine management using SQLAlchemy async.

Tenant namespaces all live in one PostgreSQL database. This module owns
the engine for that database and, when the tenant registry lives
elsewhere, builds a separate engine for it.

Uses SQLAlchemy 2.0 async API with asyncpg driver.

Example:
    from src.infrastructure.database.connection import (
        init_database,
        get_engine,
    )

    # Initialize at startup
    await init_database(settings)

    async with get_engine().connect() as conn:
        result = await conn.execute(text("SELECT 1"))
"""

from typing import TYPE_CHECKING, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

if TYPE_CHECKING:
    from src.core.config.settings import Settings

# Module-level state for the tenant database engine
_engine: Optional[AsyncEngine] = None


class DatabaseError(Exception):
    """Base exception for database setup.

    Attributes:
        message: Human-readable error description.
        original_error: The underlying SQLAlchemy or database error.
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        """Initialize the database error.

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


def create_engine_for(url: str, settings: "Settings") -> AsyncEngine:
    """Create an async engine with the configured pool parameters.

    Args:
        url: SQLAlchemy database URL (postgresql+asyncpg://...).
        settings: Application settings containing pool configuration.

    Returns:
        A new AsyncEngine. The caller owns it and must dispose it.

    Raises:
        DatabaseError: If engine creation fails.
    """
    try:
        return create_async_engine(
            url,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
            pool_pre_ping=True,
            pool_recycle=1800,
            echo=settings.debug,
        )
    except (SQLAlchemyError, ValueError) as e:
        raise DatabaseError("Failed to create database engine", e) from e


async def init_database(settings: "Settings") -> None:
    """Initialize the tenant database engine.

    Calling it again while an engine exists is a no-op.

    Args:
        settings: Application settings containing database configuration.

    Raises:
        DatabaseError: If engine creation fails.
    """
    global _engine

    if _engine is None:
        _engine = create_engine_for(settings.database.url, settings)


async def close_database() -> None:
    """Dispose of the tenant database engine and its pooled connections."""
    global _engine

    if _engine is not None:
        await _engine.dispose()
        _engine = None


def get_engine() -> AsyncEngine:
    """Get the tenant database async engine.

    Returns:
        The SQLAlchemy async engine.

    Raises:
        DatabaseError: If the database has not been initialized.
    """
    if _engine is None:
        raise DatabaseError("Database not initialized. Call init_database() first.")
    return _engine
