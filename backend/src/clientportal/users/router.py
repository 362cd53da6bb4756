"""Organization user management endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.exc import IntegrityError

from ..auth.password import hash_password, validate_password_strength
from ..models import Membership, MembershipRole, User
from ..observability.logging_config import get_logger
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER, OWNER_ADMIN, require_roles
from .schemas import UserCreate, UserUpdate, UserResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def _to_response(user: User, organization_id: str) -> UserResponse:
    role = next(
        (m.role for m in user.memberships if m.organization_id == organization_id),
        MembershipRole.GUEST.value,
    )
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=role,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def _hashed(password: str) -> str:
    is_valid, error_message = validate_password_strength(password)
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=error_message
        )
    return hash_password(password)


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    user_data: UserCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Create a user with an active membership in the caller's organization.

    Raises:
        HTTPException 400: Weak password
        HTTPException 409: Email already registered
    """
    data = user_data.model_dump(exclude={"password"})
    if user_data.password:
        data["password_hash"] = _hashed(user_data.password)

    try:
        user = gateway.user.create(data)
        gateway.commit()
    except IntegrityError:
        gateway.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered"
        )

    logger.info(f"User created: {user.id}")
    return _to_response(user, gateway.organization_id)


@router.get("", response_model=List[UserResponse])
def list_users(
    gateway: Gateway,
    role: Optional[MembershipRole] = Query(None, description="Filter by role"),
    q: Optional[str] = Query(None, description="Search in name and email"),
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """List users with an active membership in the organization."""
    where = {}
    if role:
        where["memberships"] = {"some": {"role": role.value}}
    if q:
        where["OR"] = [
            {"name": {"contains": q, "mode": "insensitive"}},
            {"email": {"contains": q, "mode": "insensitive"}},
        ]

    users = gateway.user.find_many(where=where, order_by=[{"name": "asc"}, {"id": "asc"}])
    return [_to_response(u, gateway.organization_id) for u in users]


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    user = gateway.user.find_unique({"id": user_id})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return _to_response(user, gateway.organization_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: str,
    user_data: UserUpdate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Update name, password or role in this organization.

    Raises:
        HTTPException 400: Weak password, or caller changing their own role
    """
    data = patch_values(user_data)
    if "role" in data and user_id == membership.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot change your own role"
        )
    if "password" in data:
        data["password_hash"] = _hashed(data.pop("password"))

    user = gateway.user.update({"id": user_id}, data)
    gateway.commit()
    return _to_response(user, gateway.organization_id)


@router.delete("/{user_id}", response_model=UserResponse)
def delete_user(
    user_id: str,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*OWNER)),
):
    """Delete a user of this organization (OWNER only).

    Raises:
        HTTPException 400: Caller deleting themselves
    """
    if user_id == membership.user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete your own account"
        )

    user = gateway.user.find_unique({"id": user_id})
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    response = _to_response(user, gateway.organization_id)

    gateway.user.delete({"id": user.id})
    gateway.commit()

    logger.info(f"User deleted: {user_id}")
    return response
