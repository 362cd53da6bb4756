"""Support ticket API endpoints"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import Membership, MembershipRole, TicketPriority, TicketStatus, TicketType
from ..models.base import utcnow
from ..observability.logging_config import get_logger
from ..pagination import page_window, total_pages
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, PROJECT_READERS, require_roles
from .schemas import (
    TicketCreate,
    TicketUpdate,
    TicketResponse,
    TicketListResponse,
    TicketMetrics,
)
from .sla import calculate_sla_due_at

logger = get_logger(__name__)

router = APIRouter(prefix="/tickets", tags=["tickets"])

TICKET_CREATORS = (
    MembershipRole.OWNER,
    MembershipRole.ADMIN,
    MembershipRole.FINANCE,
    MembershipRole.MEMBER,
)
OPEN_STATUSES = [TicketStatus.OPEN.value, TicketStatus.IN_PROGRESS.value, TicketStatus.IN_REVIEW.value]


# ============================================================================
# Ticket CRUD Endpoints
# ============================================================================

@router.post("", response_model=TicketResponse, status_code=status.HTTP_201_CREATED)
def create_ticket(
    ticket_data: TicketCreate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*TICKET_CREATORS)),
):
    """Open a ticket with an SLA deadline derived from its priority.

    Raises:
        HTTPException 404: Project or assignee not found in this organization
    """
    data = ticket_data.model_dump(exclude_unset=True)
    data["sla_due_at"] = calculate_sla_due_at(ticket_data.priority)

    ticket = gateway.ticket.create(data)
    gateway.commit()

    logger.info(f"Ticket created: {ticket.id} (priority {ticket.priority})")
    return TicketResponse.model_validate(ticket)


@router.get("", response_model=TicketListResponse)
def list_tickets(
    gateway: Gateway,
    status_filter: Optional[TicketStatus] = Query(None, alias="status"),
    priority: Optional[TicketPriority] = Query(None),
    ticket_type: Optional[TicketType] = Query(None, alias="type"),
    project_id: Optional[str] = Query(None),
    assignee_id: Optional[str] = Query(None),
    q: Optional[str] = Query(None, description="Search in title and description"),
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """List tickets, newest first."""
    where = {}
    if status_filter:
        where["status"] = status_filter.value
    if priority:
        where["priority"] = priority.value
    if ticket_type:
        where["type"] = ticket_type.value
    if project_id:
        where["project_id"] = project_id
    if assignee_id:
        where["assignee_id"] = assignee_id
    if q:
        where["OR"] = [
            {"title": {"contains": q, "mode": "insensitive"}},
            {"description": {"contains": q, "mode": "insensitive"}},
        ]

    skip, take = page_window(page, per_page)
    total = gateway.ticket.count(where)
    tickets = gateway.ticket.find_many(
        where=where,
        order_by=[{"created_at": "desc"}, {"id": "asc"}],
        skip=skip,
        take=take,
    )

    return TicketListResponse(
        items=[TicketResponse.model_validate(t) for t in tickets],
        total=total,
        page=page,
        per_page=per_page,
        total_pages=total_pages(total, per_page),
    )


@router.get("/metrics", response_model=TicketMetrics)
def get_ticket_metrics(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Ticket counts by status and priority, plus open SLA breaches."""
    open_filter = {"status": {"in": OPEN_STATUSES}}

    return TicketMetrics(
        total=gateway.ticket.count(),
        by_status={s.value: gateway.ticket.count({"status": s.value}) for s in TicketStatus},
        by_priority={p.value: gateway.ticket.count({"priority": p.value}) for p in TicketPriority},
        open=gateway.ticket.count(open_filter),
        unassigned_open=gateway.ticket.count({**open_filter, "assignee_id": None}),
        sla_breached=gateway.ticket.count({**open_filter, "sla_due_at": {"lt": utcnow()}}),
    )


@router.get("/{ticket_id}", response_model=TicketResponse)
def get_ticket(
    ticket_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    ticket = gateway.ticket.find_unique({"id": ticket_id})
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )
    return TicketResponse.model_validate(ticket)


@router.patch("/{ticket_id}", response_model=TicketResponse)
def update_ticket(
    ticket_id: str,
    ticket_data: TicketUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*PROJECT_READERS)),
):
    """Update a ticket; a priority change restarts the SLA clock."""
    ticket = gateway.ticket.find_unique({"id": ticket_id})
    if not ticket:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Ticket not found"
        )

    data = patch_values(ticket_data, nullable=("description", "project_id", "assignee_id"))
    if data.get("priority") and data["priority"] != ticket.priority:
        data["sla_due_at"] = calculate_sla_due_at(data["priority"])

    ticket = gateway.ticket.update({"id": ticket.id}, data)
    gateway.commit()
    return TicketResponse.model_validate(ticket)


@router.delete("/{ticket_id}", response_model=TicketResponse)
def delete_ticket(
    ticket_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    ticket = gateway.ticket.delete({"id": ticket_id})
    gateway.commit()
    return TicketResponse.model_validate(ticket)
