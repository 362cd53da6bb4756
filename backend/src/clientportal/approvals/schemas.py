"""Pydantic schemas for client approvals"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

from ..schemas import RelationConnect


class ApprovalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    project_id: Optional[str] = None
    project: Optional[RelationConnect] = None


class ApprovalDecision(BaseModel):
    """Decision on a pending approval"""
    status: Literal["approved", "rejected"]
    comment: Optional[str] = Field(None, max_length=2000)


class ApprovalResponse(BaseModel):
    id: str
    project_id: str
    title: str
    description: Optional[str]
    status: str
    requested_by_id: Optional[str]
    decided_by_id: Optional[str]
    decided_at: Optional[datetime]
    comment: Optional[str]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
