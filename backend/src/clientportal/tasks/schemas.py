"""Pydantic schemas for project tasks"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..models import TaskStatus, TaskPriority
from ..schemas import RelationConnect


class TaskCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    due_at: Optional[datetime] = None
    project_id: Optional[str] = None
    project: Optional[RelationConnect] = None
    milestone_id: Optional[str] = None
    assignee_id: Optional[str] = None

    class Config:
        use_enum_values = True


class TaskUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_at: Optional[datetime] = None
    project_id: Optional[str] = None
    milestone_id: Optional[str] = None
    assignee_id: Optional[str] = None

    class Config:
        use_enum_values = True


class TaskResponse(BaseModel):
    id: str
    project_id: str
    milestone_id: Optional[str]
    assignee_id: Optional[str]
    title: str
    description: Optional[str]
    status: str
    priority: str
    due_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
