"""Tenant isolation: request tenant context and the scoped entity gateway.

Every read and write of tenant-owned data goes through a TenantGateway
built for one request. The gateway merges the caller's organization into
each filter and payload, so consumers never control tenant fields.
"""

from .context import TenantContext, resolve_tenant_context
from .errors import (
    TenancyError,
    OrganizationContextMissingError,
    RelationRequiredError,
    RecordNotFoundError,
    AmbiguousMatchError,
    InvalidQueryError,
)
from .scoping import DirectScope, RelationScope, MembershipScope, apply_scope
from .gateway import ScopedAccessor, UserAccessor, TenantGateway

__all__ = [
    "TenantContext",
    "resolve_tenant_context",
    "TenancyError",
    "OrganizationContextMissingError",
    "RelationRequiredError",
    "RecordNotFoundError",
    "AmbiguousMatchError",
    "InvalidQueryError",
    "DirectScope",
    "RelationScope",
    "MembershipScope",
    "apply_scope",
    "ScopedAccessor",
    "UserAccessor",
    "TenantGateway",
]
