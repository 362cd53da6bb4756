"""Approval model - client sign-off request on a project deliverable"""

import enum

from sqlalchemy import Column, String, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Approval(Base):
    __tablename__ = "approval"
    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')",
            name="ck_approval_status",
        ),
        Index("ix_approval_project_id", "project_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    project_id = Column(String(36), ForeignKey("project.id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default=ApprovalStatus.PENDING.value)
    requested_by_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    decided_by_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    decided_at = Column(UTCDateTime, nullable=True)
    comment = Column(Text, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    project = relationship("Project", back_populates="approvals")
    requested_by = relationship("User", foreign_keys=[requested_by_id])
    decided_by = relationship("User", foreign_keys=[decided_by_id])

    def __repr__(self):
        return f"<Approval(id={self.id}, title='{self.title}', status='{self.status}')>"
