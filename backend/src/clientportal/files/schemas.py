"""Pydantic schemas for project file metadata"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..schemas import RelationConnect


class FileCreate(BaseModel):
    """File metadata registered against a project.

    File contents live in external object storage under ``storage_key``.
    """
    name: str = Field(..., min_length=1, max_length=255)
    mime_type: str = Field("application/octet-stream", max_length=255)
    size_bytes: int = Field(0, ge=0)
    storage_key: Optional[str] = Field(None, max_length=1024)
    project_id: Optional[str] = None
    project: Optional[RelationConnect] = None


class FileResponse(BaseModel):
    id: str
    project_id: str
    uploaded_by_id: Optional[str]
    name: str
    mime_type: str
    size_bytes: int
    storage_key: str
    created_at: datetime

    class Config:
        from_attributes = True
