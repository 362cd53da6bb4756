"""Authentication endpoints: login and current user information."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import Membership, MembershipStatus, User
from ..models.base import utcnow
from ..observability.logging_config import get_logger
from ..tenancy.dependencies import CurrentMembership
from .schemas import LoginRequest, LoginResponse, MeResponse, UserResponse
from .password import verify_password
from .jwt import create_access_token, _get_jwt_expiry_minutes

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

INVALID_CREDENTIALS = "Invalid email or password"


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
):
    """Authenticate user and return a JWT scoped to one organization.

    The token is issued for ``organization_id`` when the user has an active
    membership there, otherwise for the user's oldest active membership.

    Raises:
        HTTPException 401: Invalid credentials, or no usable active membership
    """
    user = db.execute(
        select(User).where(User.email == credentials.email.lower())
    ).scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.info("Login failed: invalid credentials")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=INVALID_CREDENTIALS
        )

    stmt = (
        select(Membership)
        .where(
            Membership.user_id == user.id,
            Membership.status == MembershipStatus.ACTIVE.value,
        )
        .order_by(Membership.created_at.asc(), Membership.id.asc())
    )
    if credentials.organization_id:
        stmt = stmt.where(Membership.organization_id == credentials.organization_id)
    membership = db.execute(stmt).scalars().first()

    if membership is None:
        logger.info("Login failed: no active membership", extra={"user_id": user.id})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No active organization membership"
        )

    user.last_login_at = utcnow()
    db.commit()

    access_token = create_access_token(
        user_id=user.id,
        org_id=membership.organization_id,
        role=membership.role,
        email=user.email
    )

    logger.info(
        "Login succeeded",
        extra={"user_id": user.id, "org_id": membership.organization_id},
    )

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=_get_jwt_expiry_minutes() * 60,
        organization_id=membership.organization_id,
        role=membership.role,
    )


@router.get("/me", response_model=MeResponse)
def get_me(membership: CurrentMembership):
    """Return the current user with the organization and role of the token."""
    return MeResponse(
        user=UserResponse.model_validate(membership.user),
        organization_id=membership.organization_id,
        role=membership.role,
    )
