"""JWT token generation and validation.

Access tokens carry the user and the organization the user logged into.
The organization claim is what the tenant context resolver scopes every
request to.

Claims:
- sub: User ID
- org_id: Organization selected at login
- role: Membership role in that organization at login time
- email: User's email address
- iat / exp: Issued-at and expiration (Unix timestamps)

Role checks on endpoints re-read the membership from the database, so the
``role`` claim is informational.

Security Properties:
- Algorithm: HS256
- Secret: JWT_SECRET environment variable
- No refresh tokens (re-login after expiry)
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Any

import jwt


def _get_jwt_secret() -> str:
    """Get JWT_SECRET from environment.

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = os.getenv('JWT_SECRET')
    if not secret:
        raise ValueError("JWT_SECRET environment variable is not set")
    return secret


def _get_jwt_expiry_minutes() -> int:
    """Get JWT_EXPIRY_MINUTES from environment (default: 60)."""
    expiry = os.getenv('JWT_EXPIRY_MINUTES', '60')
    try:
        return int(expiry)
    except ValueError:
        return 60


def create_access_token(
    user_id: str,
    org_id: str,
    role: str,
    email: str
) -> str:
    """Create a JWT access token for an authenticated user.

    Args:
        user_id: User ID
        org_id: Organization the token is scoped to
        role: Membership role (owner, admin, finance, reviewer, member, guest)
        email: User's email address

    Returns:
        str: Signed JWT token

    Raises:
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    expiry_minutes = _get_jwt_expiry_minutes()

    now = datetime.now(timezone.utc)
    expiration = now + timedelta(minutes=expiry_minutes)

    payload = {
        'sub': str(user_id),
        'org_id': str(org_id),
        'role': role,
        'email': email,
        'iat': int(now.timestamp()),
        'exp': int(expiration.timestamp())
    }

    return jwt.encode(payload, secret, algorithm='HS256')


def decode_token(token: str) -> Dict[str, Any]:
    """Decode and validate a JWT token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or tampered
        ValueError: If JWT_SECRET is not set
    """
    secret = _get_jwt_secret()
    return jwt.decode(token, secret, algorithms=['HS256'])
