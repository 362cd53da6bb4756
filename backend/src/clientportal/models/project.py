"""Project model - top-level tenant-owned work container"""

import enum

from sqlalchemy import Column, String, Text, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, generate_id, utcnow


class ProjectStatus(str, enum.Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    IN_PROGRESS = "in-progress"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Project(Base):
    """Project owned directly by one organization.

    Milestones, files, approvals and tasks have no organization column of
    their own; they reach their tenant through this table.
    """
    __tablename__ = "project"
    __table_args__ = (
        CheckConstraint(
            "status IN ('planning', 'active', 'in-progress', 'on-hold', 'completed', 'cancelled')",
            name="ck_project_status",
        ),
        Index("ix_project_organization_id", "organization_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    name = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=ProjectStatus.PLANNING.value)
    start_at = Column(UTCDateTime, nullable=True)
    due_at = Column(UTCDateTime, nullable=True)
    budget = Column(Numeric(12, 2), nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="projects")
    milestones = relationship("Milestone", back_populates="project", passive_deletes=True)
    files = relationship("File", back_populates="project", passive_deletes=True)
    approvals = relationship("Approval", back_populates="project", passive_deletes=True)
    tasks = relationship("Task", back_populates="project", passive_deletes=True)
    tickets = relationship("Ticket", back_populates="project", passive_deletes=True)
    invoices = relationship("Invoice", back_populates="project", passive_deletes=True)

    @validates('name')
    def validate_name(self, key, value):
        if not value or not value.strip():
            raise ValueError("Project name cannot be empty")
        return value.strip()

    def __repr__(self):
        return f"<Project(id={self.id}, name='{self.name}', status='{self.status}')>"
