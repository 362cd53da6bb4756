"""FastAPI dependencies wiring tenancy into request handling.

Request flow:
    get_current_user (JWT)  ->  get_tenant_context  ->  get_gateway
                                       \\->  get_current_membership -> require_roles

Usage:
    @router.get("/projects")
    def list_projects(
        gateway: Gateway,
        _: Membership = Depends(require_roles(MembershipRole.OWNER, MembershipRole.ADMIN)),
    ):
        return gateway.project.find_many()
"""

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..database import get_db
from ..models import Membership, MembershipRole, MembershipStatus, User
from .context import TenantContext, resolve_tenant_context
from .gateway import TenantGateway


def get_tenant_context(
    request: Request,
    _: User = Depends(get_current_user),
) -> TenantContext:
    """Resolve the request's tenant once; FastAPI caches it per request.

    Raises:
        OrganizationContextMissingError: Token carries no organization.
    """
    return resolve_tenant_context(request.state)


def get_gateway(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> TenantGateway:
    """Build the request's TenantGateway around the request session."""
    return TenantGateway(db, context)


def get_current_membership(
    context: TenantContext = Depends(get_tenant_context),
    db: Session = Depends(get_db),
) -> Membership:
    """Load the caller's active membership in the token's organization.

    Raises:
        HTTPException 403: No active membership (removed or deactivated
            since the token was issued).
    """
    membership = db.execute(
        select(Membership).where(
            Membership.user_id == context.user_id,
            Membership.organization_id == context.organization_id,
            Membership.status == MembershipStatus.ACTIVE.value,
        )
    ).scalar_one_or_none()

    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No active membership in this organization",
        )
    return membership


def require_roles(*roles: MembershipRole) -> Callable:
    """Create a dependency that allows only the given membership roles.

    Args:
        roles: Roles permitted to call the endpoint

    Returns:
        Callable: FastAPI dependency returning the caller's Membership

    Raises:
        HTTPException 403: If the caller's role is not in ``roles``
    """
    allowed = {MembershipRole(role).value for role in roles}

    def role_dependency(membership: Membership = Depends(get_current_membership)) -> Membership:
        if membership.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions for this operation",
            )
        return membership

    return role_dependency


# Common role sets
OWNER = (MembershipRole.OWNER,)
OWNER_ADMIN = (MembershipRole.OWNER, MembershipRole.ADMIN)
OWNER_ADMIN_FINANCE = (MembershipRole.OWNER, MembershipRole.ADMIN, MembershipRole.FINANCE)
PROJECT_READERS = (
    MembershipRole.OWNER,
    MembershipRole.ADMIN,
    MembershipRole.REVIEWER,
    MembershipRole.MEMBER,
)

# Type aliases for dependency injection
Gateway = Annotated[TenantGateway, Depends(get_gateway)]
CurrentTenant = Annotated[TenantContext, Depends(get_tenant_context)]
CurrentMembership = Annotated[Membership, Depends(get_current_membership)]
