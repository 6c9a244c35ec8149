"""Tenant context resolved by the upstream auth layer."""

from dataclasses import dataclass
from uuid import UUID

from fastapi import Header

from posledger.core.errors import UnauthorizedError


@dataclass(frozen=True)
class TenantContext:
    store_id: UUID
    actor: str


async def get_tenant_context(
    x_store_id: str | None = Header(None),
    x_actor: str | None = Header(None),
) -> TenantContext:
    """Read the already-authenticated store and actor from request headers."""
    if not x_store_id:
        raise UnauthorizedError("Store context required")
    try:
        store_id = UUID(x_store_id)
    except ValueError:
        raise UnauthorizedError("Invalid store context")

    actor = (x_actor or "").strip() or "System"
    return TenantContext(store_id=store_id, actor=actor)
