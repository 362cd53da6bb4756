"""Pydantic schemas for support tickets"""

from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, Field

from ..models import TicketType, TicketPriority, TicketStatus


class TicketCreate(BaseModel):
    """Schema for opening a ticket.

    ``organization_id`` is accepted for client compatibility and always
    replaced by the caller's organization.
    """
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    type: TicketType = TicketType.TASK
    priority: TicketPriority = TicketPriority.MEDIUM
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    organization_id: Optional[str] = None

    class Config:
        use_enum_values = True


class TicketUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    type: Optional[TicketType] = None
    priority: Optional[TicketPriority] = None
    status: Optional[TicketStatus] = None
    project_id: Optional[str] = None
    assignee_id: Optional[str] = None
    organization_id: Optional[str] = None

    class Config:
        use_enum_values = True


class TicketResponse(BaseModel):
    id: str
    organization_id: str
    project_id: Optional[str]
    assignee_id: Optional[str]
    title: str
    description: Optional[str]
    type: str
    priority: str
    status: str
    sla_due_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TicketListResponse(BaseModel):
    items: list[TicketResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class TicketMetrics(BaseModel):
    """Ticket counts for the caller's organization"""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    open: int
    unassigned_open: int
    sla_breached: int
