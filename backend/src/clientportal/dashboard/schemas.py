"""Pydantic schemas for dashboard responses"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ProjectCounts(BaseModel):
    total: int
    active: int
    completed: int
    on_hold: int


class TicketCounts(BaseModel):
    total: int
    open: int
    in_progress: int
    high_priority: int
    critical: int


class InvoiceCounts(BaseModel):
    total: int
    pending: int
    overdue: int
    total_amount: float
    pending_amount: float


class MilestoneCounts(BaseModel):
    total: int
    completed: int
    overdue: int
    due_this_week: int


class DashboardStats(BaseModel):
    projects: ProjectCounts
    tickets: TicketCounts
    invoices: InvoiceCounts
    milestones: MilestoneCounts


class ActivityItem(BaseModel):
    """One entry of the recent activity feed"""
    id: str
    type: str  # project | ticket | milestone | invoice
    title: str
    status: str
    priority: Optional[str] = None
    due_at: Optional[datetime] = None
    timestamp: datetime


class ProjectOverview(BaseModel):
    id: str
    name: str
    status: str
    progress: int
    total_milestones: int
    completed_milestones: int
    open_tickets: int
    high_priority_tickets: int
    start_at: Optional[datetime]
    due_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime
