"""Pydantic schemas for organization user management"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from ..models import MembershipRole


class UserCreate(BaseModel):
    """Schema for adding a user to the caller's organization.

    Attributes:
        email: User's email address (globally unique)
        name: Display name
        password: Optional initial password. Users without one cannot log in.
        role: Membership role in this organization
    """
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=200)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: MembershipRole = MembershipRole.MEMBER

    @field_validator('email')
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    class Config:
        use_enum_values = True


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    password: Optional[str] = Field(None, min_length=8, max_length=128)
    role: Optional[MembershipRole] = None

    class Config:
        use_enum_values = True


class UserResponse(BaseModel):
    """User with their role in the caller's organization"""
    id: str
    email: str
    name: str
    role: str
    last_login_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
