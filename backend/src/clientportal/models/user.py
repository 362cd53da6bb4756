"""User SQLAlchemy model"""

import re

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, generate_id, utcnow


class User(Base):
    """User model representing authenticated people.

    Users are global; they gain access to an organization through an active
    Membership. Passwords are hashed using Argon2id.
    """
    __tablename__ = "user"

    id = Column(String(36), primary_key=True, default=generate_id)
    email = Column(Text, nullable=False, unique=True)
    name = Column(Text, nullable=False)
    password_hash = Column(Text, nullable=True)
    last_login_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    memberships = relationship(
        "Membership",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates('email')
    def validate_email(self, key, value):
        """Basic email format validation"""
        if not re.match(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$', value):
            raise ValueError("Invalid email format")
        return value.lower()

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"
