"""Approval request endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import ApprovalStatus, Membership, MembershipRole
from ..models.base import utcnow
from ..observability.logging_config import get_logger
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, PROJECT_READERS, require_roles
from .schemas import ApprovalCreate, ApprovalDecision, ApprovalResponse

logger = get_logger(__name__)

router = APIRouter(prefix="/approvals", tags=["approvals"])

DECIDERS = (MembershipRole.OWNER, MembershipRole.ADMIN, MembershipRole.REVIEWER)


@router.post("", response_model=ApprovalResponse, status_code=status.HTTP_201_CREATED)
def create_approval(
    approval_data: ApprovalCreate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Request an approval on a project; the caller is the requester."""
    data = approval_data.model_dump(exclude_unset=True)
    data["requested_by_id"] = membership.user_id

    approval = gateway.approval.create(data)
    gateway.commit()
    return ApprovalResponse.model_validate(approval)


@router.get("", response_model=List[ApprovalResponse])
def list_approvals(
    gateway: Gateway,
    project_id: Optional[str] = Query(None),
    status_filter: Optional[ApprovalStatus] = Query(None, alias="status"),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    where = {}
    if project_id:
        where["project_id"] = project_id
    if status_filter:
        where["status"] = status_filter.value

    approvals = gateway.approval.find_many(where=where, order_by={"created_at": "desc"})
    return [ApprovalResponse.model_validate(a) for a in approvals]


@router.get("/{approval_id}", response_model=ApprovalResponse)
def get_approval(
    approval_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    approval = gateway.approval.find_unique({"id": approval_id})
    if not approval:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Approval not found"
        )
    return ApprovalResponse.model_validate(approval)


@router.post("/{approval_id}/decision", response_model=ApprovalResponse)
def decide_approval(
    approval_id: str,
    decision: ApprovalDecision,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*DECIDERS)),
):
    """Approve or reject a pending approval (OWNER/ADMIN/REVIEWER).

    Raises:
        HTTPException 404: Approval not found in this organization
        HTTPException 409: Approval already decided
    """
    approval = gateway.approval.find_unique({"id": approval_id})
    if not approval:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Approval not found"
        )
    if approval.status != ApprovalStatus.PENDING.value:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Approval already {approval.status}"
        )

    approval = gateway.approval.update(
        {"id": approval.id, "status": ApprovalStatus.PENDING.value},
        {
            "status": decision.status,
            "comment": decision.comment,
            "decided_by_id": membership.user_id,
            "decided_at": utcnow(),
        },
    )
    gateway.commit()

    logger.info(f"Approval {approval.id} {decision.status}")
    return ApprovalResponse.model_validate(approval)


@router.delete("/{approval_id}", response_model=ApprovalResponse)
def delete_approval(
    approval_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    approval = gateway.approval.delete({"id": approval_id})
    gateway.commit()
    return ApprovalResponse.model_validate(approval)
