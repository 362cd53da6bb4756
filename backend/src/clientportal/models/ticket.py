"""Ticket model - support request owned directly by an organization"""

import enum

from sqlalchemy import Column, String, Text, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship

from .base import Base, UTCDateTime, generate_id, utcnow


class TicketType(str, enum.Enum):
    BUG = "bug"
    FEATURE = "feature"
    IMPROVEMENT = "improvement"
    QUESTION = "question"
    TASK = "task"


class TicketPriority(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    IN_REVIEW = "in-review"
    RESOLVED = "resolved"
    CLOSED = "closed"


class Ticket(Base):
    """Support ticket.

    sla_due_at is derived from priority when the ticket is created and
    recomputed whenever the priority changes.
    """
    __tablename__ = "ticket"
    __table_args__ = (
        CheckConstraint(
            "type IN ('bug', 'feature', 'improvement', 'question', 'task')",
            name="ck_ticket_type",
        ),
        CheckConstraint(
            "priority IN ('low', 'medium', 'high', 'critical')",
            name="ck_ticket_priority",
        ),
        CheckConstraint(
            "status IN ('open', 'in-progress', 'in-review', 'resolved', 'closed')",
            name="ck_ticket_status",
        ),
        Index("ix_ticket_organization_id", "organization_id"),
        Index("ix_ticket_org_status", "organization_id", "status"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    project_id = Column(String(36), ForeignKey("project.id", ondelete="SET NULL"), nullable=True)
    assignee_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    type = Column(Text, nullable=False, default=TicketType.TASK.value)
    priority = Column(Text, nullable=False, default=TicketPriority.MEDIUM.value)
    status = Column(Text, nullable=False, default=TicketStatus.OPEN.value)
    sla_due_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="tickets")
    project = relationship("Project", back_populates="tickets")
    assignee = relationship("User")

    def __repr__(self):
        return f"<Ticket(id={self.id}, title='{self.title}', priority='{self.priority}')>"
