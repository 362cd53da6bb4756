"""Pydantic schemas for project management"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models import ProjectStatus


class ProjectCreate(BaseModel):
    """Schema for creating a project.

    ``organization_id`` is accepted for client compatibility and always
    replaced by the caller's organization.
    """
    name: str = Field(..., min_length=1, max_length=200)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    budget: Optional[Decimal] = Field(None, ge=0)
    organization_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Validate name is not empty after stripping whitespace"""
        if not v.strip():
            raise ValueError("Project name cannot be empty")
        return v.strip()

    class Config:
        use_enum_values = True


class ProjectUpdate(BaseModel):
    """Schema for updating a project (partial updates)"""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    status: Optional[ProjectStatus] = None
    start_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    budget: Optional[Decimal] = Field(None, ge=0)
    organization_id: Optional[str] = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Project name cannot be empty")
        return v.strip()

    class Config:
        use_enum_values = True


class ProjectResponse(BaseModel):
    id: str
    organization_id: str
    name: str
    status: str
    start_at: Optional[datetime]
    due_at: Optional[datetime]
    budget: Optional[float]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProjectListResponse(BaseModel):
    """Schema for paginated project list response"""
    items: list[ProjectResponse]
    total: int
    page: int
    per_page: int
    total_pages: int


class ProjectStats(BaseModel):
    """Progress and workload figures for one project"""
    project_id: str
    milestones_total: int
    milestones_completed: int
    progress_percent: int
    tasks_total: int
    tasks_done: int
    open_tickets: int
    files: int
    pending_approvals: int
