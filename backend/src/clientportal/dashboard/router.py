"""Dashboard API endpoints"""

from typing import List

from fastapi import APIRouter, Depends, Query

from ..models import Membership
from ..tenancy.dependencies import Gateway, PROJECT_READERS, require_roles
from .schemas import ActivityItem, DashboardStats, ProjectOverview
from .service import DashboardService

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
def get_dashboard_stats(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Project, ticket, invoice and milestone counts for the organization."""
    return DashboardService(gateway).stats()


@router.get("/recent-activity", response_model=List[ActivityItem])
def get_recent_activity(
    gateway: Gateway,
    limit: int = Query(10, ge=1, description="Maximum items (capped server-side)"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    return DashboardService(gateway).recent_activity(limit)


@router.get("/projects-overview", response_model=List[ProjectOverview])
def get_projects_overview(
    gateway: Gateway,
    limit: int = Query(6, ge=1, description="Maximum projects (capped server-side)"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Most recently updated projects with milestone progress and ticket load."""
    return DashboardService(gateway).projects_overview(limit)
