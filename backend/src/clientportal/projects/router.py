"""Project management API endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import (
    ApprovalStatus,
    Membership,
    MilestoneStatus,
    Project,
    ProjectStatus,
    TaskStatus,
    TicketStatus,
)
from ..observability.logging_config import get_logger
from ..pagination import page_window, total_pages
from ..schemas import patch_values
from ..tenancy.dependencies import (
    Gateway,
    OWNER,
    OWNER_ADMIN_FINANCE,
    PROJECT_READERS,
    require_roles,
)
from .schemas import (
    ProjectCreate,
    ProjectUpdate,
    ProjectResponse,
    ProjectListResponse,
    ProjectStats,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/projects", tags=["projects"])

OPEN_TICKET_STATUSES = [TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value, TicketStatus.IN_REVIEW.value]


def _get_project_or_404(gateway: Gateway, project_id: str) -> Project:
    project = gateway.project.find_unique({"id": project_id})
    if not project:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Project not found"
        )
    return project


# ============================================================================
# Project CRUD Endpoints
# ============================================================================

@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
def create_project(
    project_data: ProjectCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    """Create a project in the caller's organization (OWNER/ADMIN/FINANCE)."""
    project = gateway.project.create(project_data.model_dump())
    gateway.commit()

    logger.info(f"Project created: {project.id}")
    return ProjectResponse.model_validate(project)


@router.get("", response_model=ProjectListResponse)
def list_projects(
    gateway: Gateway,
    status_filter: Optional[ProjectStatus] = Query(None, alias="status", description="Filter by status"),
    q: Optional[str] = Query(None, description="Search in project name"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(50, ge=1, le=100, description="Items per page"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """List projects, newest first, with optional status and name search."""
    where = {}
    if status_filter:
        where["status"] = status_filter.value
    if q:
        where["name"] = {"contains": q, "mode": "insensitive"}

    skip, take = page_window(page, per_page)
    total = gateway.project.count(where)
    projects = gateway.project.find_many(
        where=where,
        order_by=[{"created_at": "desc"}, {"id": "asc"}],
        skip=skip,
        take=take,
    )

    return ProjectListResponse(
        items=[ProjectResponse.model_validate(p) for p in projects],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages(total, per_page),
    )


@router.get("/{project_id}", response_model=ProjectResponse)
def get_project(
    project_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Get a project by ID.

    Raises:
        HTTPException 404: If project not found or belongs to different org
    """
    return ProjectResponse.model_validate(_get_project_or_404(gateway, project_id))


@router.patch("/{project_id}", response_model=ProjectResponse)
def update_project(
    project_id: str,
    project_data: ProjectUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    """Update a project (partial update, OWNER/ADMIN/FINANCE).

    Raises:
        HTTPException 404: If project not found or belongs to different org
    """
    project = gateway.project.update(
        {"id": project_id},
        patch_values(project_data, nullable=("start_at", "due_at", "budget")),
    )
    gateway.commit()
    return ProjectResponse.model_validate(project)


@router.delete("/{project_id}", response_model=ProjectResponse)
def delete_project(
    project_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER)),
):
    """Delete a project and everything attached to it (OWNER only)."""
    project = gateway.project.delete({"id": project_id})
    gateway.commit()

    logger.info(f"Project deleted: {project.id}")
    return ProjectResponse.model_validate(project)


@router.get("/{project_id}/stats", response_model=ProjectStats)
def get_project_stats(
    project_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Milestone progress and workload counts for one project."""
    project = _get_project_or_404(gateway, project_id)
    in_project = {"project_id": project.id}

    milestones_total = gateway.milestone.count(in_project)
    milestones_completed = gateway.milestone.count(
        {**in_project, "status": MilestoneStatus.COMPLETED.value}
    )
    progress = round(milestones_completed / milestones_total * 100) if milestones_total else 0

    return ProjectStats(
        project_id=project.id,
        milestones_total=milestones_total,
        milestones_completed=milestones_completed,
        progress_percent=progress,
        tasks_total=gateway.task.count(in_project),
        tasks_done=gateway.task.count({**in_project, "status": TaskStatus.DONE.value}),
        open_tickets=gateway.ticket.count({**in_project, "status": {"in": OPEN_TICKET_STATUSES}}),
        files=gateway.file.count(in_project),
        pending_approvals=gateway.approval.count(
            {**in_project, "status": ApprovalStatus.PENDING.value}
        ),
    )
