"""SQLAlchemy Models for the client portal"""

from .base import Base
from .organization import Organization
from .membership import Membership, MembershipRole, MembershipStatus
from .user import User
from .project import Project, ProjectStatus
from .milestone import Milestone, MilestoneStatus
from .file import File
from .approval import Approval, ApprovalStatus
from .task import Task, TaskStatus, TaskPriority
from .ticket import Ticket, TicketType, TicketPriority, TicketStatus
from .invoice import Invoice, InvoiceStatus
from .knowledge_base import KbArticle, KbArticleStatus, KbCategory, KbFeedback, KbTag

__all__ = [
    "Base",
    "Organization",
    "Membership",
    "MembershipRole",
    "MembershipStatus",
    "User",
    "Project",
    "ProjectStatus",
    "Milestone",
    "MilestoneStatus",
    "File",
    "Approval",
    "ApprovalStatus",
    "Task",
    "TaskStatus",
    "TaskPriority",
    "Ticket",
    "TicketType",
    "TicketPriority",
    "TicketStatus",
    "Invoice",
    "InvoiceStatus",
    "KbCategory",
    "KbTag",
    "KbArticle",
    "KbArticleStatus",
    "KbFeedback",
]
