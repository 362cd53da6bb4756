"""Project file metadata endpoints"""

from typing import List, Optional
from uuid import uuid4

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import Membership
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, PROJECT_READERS, require_roles
from .schemas import FileCreate, FileResponse

router = APIRouter(prefix="/files", tags=["files"])


@router.post("", response_model=FileResponse, status_code=status.HTTP_201_CREATED)
def create_file(
    file_data: FileCreate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Register file metadata; the caller is recorded as uploader."""
    data = file_data.model_dump(exclude_unset=True)
    if not data.get("storage_key"):
        data["storage_key"] = f"{gateway.organization_id}/{uuid4()}/{file_data.name}"
    data["uploaded_by_id"] = membership.user_id

    file = gateway.file.create(data)
    gateway.commit()
    return FileResponse.model_validate(file)


@router.get("", response_model=List[FileResponse])
def list_files(
    gateway: Gateway,
    project_id: Optional[str] = Query(None, description="Filter by project"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    where = {"project_id": project_id} if project_id else None
    files = gateway.file.find_many(where=where, order_by={"created_at": "desc"})
    return [FileResponse.model_validate(f) for f in files]


@router.get("/{file_id}", response_model=FileResponse)
def get_file(
    file_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    file = gateway.file.find_unique({"id": file_id})
    if not file:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="File not found"
        )
    return FileResponse.model_validate(file)


@router.delete("/{file_id}", response_model=FileResponse)
def delete_file(
    file_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    """Delete file metadata. Object storage cleanup happens outside the API."""
    file = gateway.file.delete({"id": file_id})
    gateway.commit()
    return FileResponse.model_validate(file)
