"""Pydantic schemas for authentication endpoints"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class LoginRequest(BaseModel):
    """Request schema for user login.

    Attributes:
        email: User's email address
        password: User's password (plain text, verified against hash)
        organization_id: Organization to log into. Defaults to the user's
            first active membership.
    """
    email: EmailStr
    password: str = Field(..., min_length=1)
    organization_id: Optional[str] = None


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int = 3600
    organization_id: str
    role: str


class UserResponse(BaseModel):
    """User information response (excludes password_hash)."""
    id: str
    email: str
    name: str
    last_login_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class MeResponse(BaseModel):
    """Response schema for GET /auth/me.

    Attributes:
        user: Current user information
        organization_id: Organization the token is scoped to
        role: Current membership role in that organization
    """
    user: UserResponse
    organization_id: str
    role: str
