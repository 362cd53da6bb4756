"""Tenant context resolution.

The tenant context is resolved once per request from the identity that
authentication attached to ``request.state`` and then passed explicitly to
the gateway.
"""

from dataclasses import dataclass
from typing import Any, Optional

from ..observability.request_id import bind_tenant
from .errors import OrganizationContextMissingError


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant identity of one request."""

    organization_id: str
    user_id: Optional[str] = None


def resolve_tenant_context(state: Any) -> TenantContext:
    """Build the TenantContext from authenticated request state.

    Args:
        state: ``request.state`` (or any object) carrying ``organization_id``
            and ``user_id`` attributes set by authentication.

    Returns:
        TenantContext: Same value for the same state, every time.

    Raises:
        OrganizationContextMissingError: If no organization is present.
    """
    organization_id = getattr(state, "organization_id", None)
    user_id = getattr(state, "user_id", None)

    if not organization_id:
        raise OrganizationContextMissingError()

    organization_id = str(organization_id)
    user_id = str(user_id) if user_id else None

    bind_tenant(organization_id, user_id)
    return TenantContext(organization_id=organization_id, user_id=user_id)
