"""FastAPI dependencies for authentication.

get_current_user validates the bearer token, loads the user and records the
token's identity on ``request.state``. The tenant context resolver reads
that state; authentication itself never scopes data.

Usage:
    @router.get("/protected")
    def protected_endpoint(user: CurrentUser):
        return {"message": f"Hello {user.name}"}
"""

from typing import Annotated

import jwt
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.orm import Session

from ..database import get_db
from ..models import User
from .jwt import decode_token


# HTTP Bearer token security scheme
security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: Session = Depends(get_db)
) -> User:
    """Extract and validate JWT token, returning the authenticated user.

    This dependency:
    1. Extracts Bearer token from Authorization header
    2. Validates token signature and expiration
    3. Loads user from database
    4. Stores ``user_id`` and ``organization_id`` on ``request.state``

    Raises:
        HTTPException 401: If token is missing, invalid, expired, or user not found
    """
    try:
        payload = decode_token(credentials.credentials)
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid token: {str(e)}")

    user_id = payload.get("sub")
    if not user_id:
        raise _unauthorized("Invalid token: missing user ID claim")

    user = db.get(User, str(user_id))
    if not user:
        raise _unauthorized("User not found")

    request.state.user_id = user.id
    # May be absent; the tenant context resolver rejects that case
    request.state.organization_id = payload.get("org_id")
    return user


# Type alias for dependency injection
CurrentUser = Annotated[User, Depends(get_current_user)]
