"""Milestone API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import Membership, MilestoneStatus
from ..models.base import utcnow
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, PROJECT_READERS, require_roles
from .schemas import MilestoneCreate, MilestoneUpdate, MilestoneResponse

router = APIRouter(prefix="/milestones", tags=["milestones"])


def _completion_fields(data: dict) -> dict:
    """Keep completed_at in step with the status being written."""
    if "status" not in data:
        return data
    if data["status"] == MilestoneStatus.COMPLETED.value:
        return {**data, "completed_at": utcnow()}
    return {**data, "completed_at": None}


@router.post("", response_model=MilestoneResponse, status_code=status.HTTP_201_CREATED)
def create_milestone(
    milestone_data: MilestoneCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Create a milestone under a project of the caller's organization.

    Raises:
        HTTPException 400: No project given
        HTTPException 404: Project not found in this organization
    """
    data = _completion_fields(milestone_data.model_dump(exclude_unset=True))
    milestone = gateway.milestone.create(data)
    gateway.commit()
    return MilestoneResponse.model_validate(milestone)


@router.get("", response_model=List[MilestoneResponse])
def list_milestones(
    gateway: Gateway,
    project_id: Optional[str] = Query(None, description="Filter by project"),
    status_filter: Optional[MilestoneStatus] = Query(None, alias="status"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """List milestones ordered by due date."""
    where = {}
    if project_id:
        where["project_id"] = project_id
    if status_filter:
        where["status"] = status_filter.value

    milestones = gateway.milestone.find_many(
        where=where,
        order_by=[{"due_at": "asc"}, {"created_at": "asc"}],
    )
    return [MilestoneResponse.model_validate(m) for m in milestones]


@router.get("/{milestone_id}", response_model=MilestoneResponse)
def get_milestone(
    milestone_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    milestone = gateway.milestone.find_unique({"id": milestone_id})
    if not milestone:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Milestone not found"
        )
    return MilestoneResponse.model_validate(milestone)


@router.patch("/{milestone_id}", response_model=MilestoneResponse)
def update_milestone(
    milestone_id: str,
    milestone_data: MilestoneUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Update a milestone; moving it to another project checks that project."""
    data = _completion_fields(patch_values(milestone_data, nullable=("due_at", "project_id")))
    milestone = gateway.milestone.update({"id": milestone_id}, data)
    gateway.commit()
    return MilestoneResponse.model_validate(milestone)


@router.delete("/{milestone_id}", response_model=MilestoneResponse)
def delete_milestone(
    milestone_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    milestone = gateway.milestone.delete({"id": milestone_id})
    gateway.commit()
    return MilestoneResponse.model_validate(milestone)
