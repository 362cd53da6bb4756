"""Membership model - join entity between users and organizations"""

import enum

from sqlalchemy import Column, String, Text, ForeignKey, CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class MembershipRole(str, enum.Enum):
    """Role a user holds inside one organization.

    Values are stored as TEXT in the database and must match exactly.
    """
    OWNER = "owner"
    ADMIN = "admin"
    FINANCE = "finance"
    REVIEWER = "reviewer"
    MEMBER = "member"
    GUEST = "guest"


class MembershipStatus(str, enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Membership(Base):
    """Links a user to an organization with a role.

    A user may belong to several organizations. Only ACTIVE memberships
    grant access; the tenant gateway scopes users through them.
    """
    __tablename__ = "membership"
    __table_args__ = (
        CheckConstraint(
            "role IN ('owner', 'admin', 'finance', 'reviewer', 'member', 'guest')",
            name="ck_membership_role",
        ),
        CheckConstraint(
            "status IN ('active', 'inactive')",
            name="ck_membership_status",
        ),
        UniqueConstraint("user_id", "organization_id", name="uq_membership_user_org"),
        Index("ix_membership_organization_id", "organization_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    role = Column(Text, nullable=False, default=MembershipRole.MEMBER.value)
    status = Column(Text, nullable=False, default=MembershipStatus.ACTIVE.value)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)

    # Relationships
    user = relationship("User", back_populates="memberships")
    organization = relationship("Organization", back_populates="memberships")

    def __repr__(self):
        return (
            f"<Membership(user_id={self.user_id}, organization_id={self.organization_id}, "
            f"role='{self.role}', status='{self.status}')>"
        )
