"""Task API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import Membership, TaskStatus
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, PROJECT_READERS, require_roles
from .schemas import TaskCreate, TaskUpdate, TaskResponse

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Create a task. Project, milestone and assignee must belong to the organization."""
    task = gateway.task.create(task_data.model_dump(exclude_unset=True))
    gateway.commit()
    return TaskResponse.model_validate(task)


@router.get("", response_model=List[TaskResponse])
def list_tasks(
    gateway: Gateway,
    project_id: Optional[str] = Query(None),
    milestone_id: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None),
    status_filter: Optional[TaskStatus] = Query(None, alias="status"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    where = {}
    if project_id:
        where["project_id"] = project_id
    if milestone_id:
        where["milestone_id"] = milestone_id
    if assignee_id:
        where["assignee_id"] = assignee_id
    if status_filter:
        where["status"] = status_filter.value

    tasks = gateway.task.find_many(where=where, order_by=[{"due_at": "asc"}, {"created_at": "asc"}])
    return [TaskResponse.model_validate(t) for t in tasks]


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(
    task_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    task = gateway.task.find_unique({"id": task_id})
    if not task:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Task not found"
        )
    return TaskResponse.model_validate(task)


@router.patch("/{task_id}", response_model=TaskResponse)
def update_task(
    task_id: str,
    task_data: TaskUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    task = gateway.task.update(
        {"id": task_id},
        patch_values(task_data, nullable=("description", "due_at", "project_id", "milestone_id", "assignee_id")),
    )
    gateway.commit()
    return TaskResponse.model_validate(task)


@router.delete("/{task_id}", response_model=TaskResponse)
def delete_task(
    task_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    task = gateway.task.delete({"id": task_id})
    gateway.commit()
    return TaskResponse.model_validate(task)
