"""Milestone model - scoped to a tenant through its project"""

import enum

from sqlalchemy import Column, String, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class MilestoneStatus(str, enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class Milestone(Base):
    __tablename__ = "milestone"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'in-progress', 'completed')",
            name="ck_milestone_status",
        ),
        Index("ix_milestone_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default=MilestoneStatus.PENDING.value)
    due_at = Column(UTCDateTime, nullable=True)
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    project = relationship("Project", back_populates="milestones")
    tasks = relationship("Task", back_populates="milestone")

    def __repr__(self):
        return f"<Milestone(id={self.id}, title='{self.title}', status='{self.status}')>"
