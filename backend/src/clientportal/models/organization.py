"""Organization model - Root entity for multi-tenant isolation"""

from sqlalchemy import Column, String, Text
from sqlalchemy.orm import validates, relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class Organization(Base):
    """
    Organization model - Root entity of tenancy.

    Every tenant-owned row traces back to exactly one organization, either
    through its own organization_id column (projects, tickets, invoices) or
    through its parent project (milestones, files, approvals, tasks). Users
    are attached through memberships.
    """
    __tablename__ = "organization"

    id = Column(String(36), primary_key=True, default=generate_id)
    name = Column(Text, nullable=False)
    billing_email = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    memberships = relationship("Membership", back_populates="organization", passive_deletes=True)
    projects = relationship("Project", back_populates="organization", passive_deletes=True)
    tickets = relationship("Ticket", back_populates="organization", passive_deletes=True)
    invoices = relationship("Invoice", back_populates="organization", passive_deletes=True)

    @validates('name')
    def validate_name(self, key, value):
        """
        Ensure organization name is not empty and within length limits.

        Raises:
            ValueError: If name is empty/whitespace or exceeds 200 characters
        """
        if not value or len(value.strip()) == 0:
            raise ValueError("Organization name cannot be empty")
        if len(value) > 200:
            raise ValueError("Organization name cannot exceed 200 characters")
        return value.strip()

    def __repr__(self):
        return f"<Organization(id={self.id}, name='{self.name}')>"
