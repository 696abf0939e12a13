# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Tenant namespace naming.

Every tenant's tables live in a PostgreSQL schema whose name is derived
from the tenant identifier. Names produced here are the only identifiers
that ever get interpolated into SQL text, so the rules are strict:
lowercase ASCII letters, digits and underscores, at most 63 characters
(PostgreSQL silently truncates longer identifiers).

Example:
    >>> resolve_namespace("7b1c-44d2")
    'tenant_7b1c44d2'
    >>> resolve_namespace("7b1c-44d2", "tenant_legacy")
    'tenant_legacy'
"""

import re
from typing import Optional

from src.core.schema.errors import InvalidTenantIdentifierError

NAMESPACE_PREFIX = "tenant_"
MAX_IDENTIFIER_LENGTH = 63

_SAFE_IDENTIFIER = re.compile(r"^[a-z0-9_]+$")
_UNSAFE_CHARS = re.compile(r"[^a-z0-9]")


def is_safe_identifier(name: Optional[str]) -> bool:
    """Check whether a name may be used as an SQL identifier verbatim."""
    if not name or len(name) > MAX_IDENTIFIER_LENGTH:
        return False
    return bool(_SAFE_IDENTIFIER.match(name))


def quote_identifier(name: str) -> str:
    """Validate and double-quote an identifier for use in SQL text.

    Args:
        name: Schema, table, column or index name.

    Returns:
        The quoted identifier.

    Raises:
        ValueError: If the name is not a safe identifier.
    """
    if not is_safe_identifier(name):
        raise ValueError(f"Unsafe SQL identifier: {name!r}")
    return f'"{name}"'


def normalize_tenant_id(tenant_id: object) -> str:
    """Case-fold a tenant identifier and strip everything outside [a-z0-9]."""
    return _UNSAFE_CHARS.sub("", str(tenant_id).casefold())


def resolve_namespace(tenant_id: object, stored_name: Optional[str] = None) -> str:
    """Resolve the namespace (schema) name for a tenant.

    A stored name that is already a safe identifier is returned unchanged.
    Otherwise the name is derived deterministically from the tenant id.

    Args:
        tenant_id: Opaque tenant identifier (usually a UUID).
        stored_name: Namespace name recorded in the tenant registry, if any.

    Returns:
        Namespace name matching ``^[a-z0-9_]+$``.

    Raises:
        InvalidTenantIdentifierError: If the identifier normalizes to nothing
            or the derived name is too long.
    """
    if stored_name is not None and is_safe_identifier(stored_name):
        return stored_name

    normalized = normalize_tenant_id(tenant_id)
    if not normalized:
        raise InvalidTenantIdentifierError(tenant_id)

    namespace = f"{NAMESPACE_PREFIX}{normalized}"
    if len(namespace) > MAX_IDENTIFIER_LENGTH:
        raise InvalidTenantIdentifierError(tenant_id)
    return namespace
