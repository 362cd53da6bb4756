"""Pydantic schemas for project milestones"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models import MilestoneStatus
from ..schemas import RelationConnect


class MilestoneCreate(BaseModel):
    """Schema for creating a milestone.

    The parent project is given either as ``project_id`` or in connect form
    (``{"project": {"connect": {"id": ...}}}``).
    """
    title: str = Field(..., min_length=1, max_length=200)
    status: MilestoneStatus = MilestoneStatus.PENDING
    due_at: Optional[datetime] = None
    project_id: Optional[str] = None
    project: Optional[RelationConnect] = None

    class Config:
        use_enum_values = True


class MilestoneUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[MilestoneStatus] = None
    due_at: Optional[datetime] = None
    project_id: Optional[str] = None

    class Config:
        use_enum_values = True


class MilestoneResponse(BaseModel):
    id: str
    project_id: str
    title: str
    status: str
    due_at: Optional[datetime]
    completed_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
