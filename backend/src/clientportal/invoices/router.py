"""Invoice API endpoints"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from ..models import InvoiceStatus, Membership, MembershipRole
from ..models.base import utcnow
from ..observability.logging_config import get_logger
from ..schemas import patch_values
from ..tenancy.dependencies import Gateway, OWNER_ADMIN, OWNER_ADMIN_FINANCE, require_roles
from .schemas import InvoiceCreate, InvoiceUpdate, InvoiceResponse, InvoiceStats

logger = get_logger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])

INVOICE_VIEWERS = OWNER_ADMIN_FINANCE + (MembershipRole.MEMBER,)
UNPAYABLE_STATUSES = (InvoiceStatus.PAID.value, InvoiceStatus.CANCELLED.value)


def _status_timestamps(data: dict) -> dict:
    """Stamp issued_at / paid_at when the status moves to issued / paid."""
    new_status = data.get("status")
    if new_status == InvoiceStatus.ISSUED.value and not data.get("issued_at"):
        return {**data, "issued_at": utcnow()}
    if new_status == InvoiceStatus.PAID.value:
        return {**data, "paid_at": utcnow()}
    return data


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice_data: InvoiceCreate,
    gateway: Gateway,
    membership: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    """Create an invoice issued by the caller (OWNER/ADMIN/FINANCE).

    Raises:
        HTTPException 404: Project not found in this organization
    """
    data = _status_timestamps(invoice_data.model_dump(exclude_unset=True))
    data["issued_by_id"] = membership.user_id

    invoice = gateway.invoice.create(data)
    gateway.commit()

    logger.info(f"Invoice created: {invoice.id}")
    return InvoiceResponse.model_validate(invoice)


@router.get("", response_model=List[InvoiceResponse])
def list_invoices(
    gateway: Gateway,
    project_id: Optional[str] = Query(None),
    status_filter: Optional[InvoiceStatus] = Query(None, alias="status"),
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    where = {}
    if project_id:
        where["project_id"] = project_id
    if status_filter:
        where["status"] = status_filter.value

    invoices = gateway.invoice.find_many(where=where, order_by=[{"created_at": "desc"}, {"id": "asc"}])
    return [InvoiceResponse.model_validate(i) for i in invoices]


@router.get("/stats", response_model=InvoiceStats)
def get_invoice_stats(
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    """Counts per status, amounts and payment rate."""
    invoices = gateway.invoice.find_many()

    def count(s: InvoiceStatus) -> int:
        return sum(1 for i in invoices if i.status == s.value)

    total_amount = sum(float(i.amount) for i in invoices)
    paid_amount = sum(float(i.amount) for i in invoices if i.status == InvoiceStatus.PAID.value)
    paid = count(InvoiceStatus.PAID)

    return InvoiceStats(
        total=len(invoices),
        draft=count(InvoiceStatus.DRAFT),
        issued=count(InvoiceStatus.ISSUED),
        paid=paid,
        overdue=count(InvoiceStatus.OVERDUE),
        total_amount=round(total_amount, 2),
        paid_amount=round(paid_amount, 2),
        outstanding_amount=round(total_amount - paid_amount, 2),
        payment_rate=round(paid / len(invoices) * 100) if invoices else 0,
    )


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*INVOICE_VIEWERS)),
):
    invoice = gateway.invoice.find_unique({"id": invoice_id})
    if not invoice:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invoice not found"
        )
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}", response_model=InvoiceResponse)
def update_invoice(
    invoice_id: str,
    invoice_data: InvoiceUpdate,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    data = _status_timestamps(
        patch_values(invoice_data, nullable=("number", "description", "project_id", "issued_at", "due_at"))
    )
    invoice = gateway.invoice.update({"id": invoice_id}, data)
    gateway.commit()
    return InvoiceResponse.model_validate(invoice)


@router.put("/{invoice_id}/pay", response_model=InvoiceResponse)
def pay_invoice(
    invoice_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN_FINANCE)),
):
    """Mark an invoice as paid.

    Raises:
        HTTPException 404: Invoice not found in this organization
        HTTPException 409: Invoice already paid or cancelled
    """
    invoice = gateway.invoice.find_unique({"id": invoice_id})
    if not invoice:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invoice not found"
        )
    if invoice.status in UNPAYABLE_STATUSES:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice is {invoice.status}"
        )

    invoice = gateway.invoice.update(
        {"id": invoice.id},
        {"status": InvoiceStatus.PAID.value, "paid_at": utcnow()},
    )
    gateway.commit()

    logger.info(f"Invoice marked as paid: {invoice.id}")
    return InvoiceResponse.model_validate(invoice)


@router.delete("/{invoice_id}", response_model=InvoiceResponse)
def delete_invoice(
    invoice_id: str,
    gateway: Gateway,
    _: Membership = Depends(require_roles(*OWNER_ADMIN)),
):
    invoice = gateway.invoice.delete({"id": invoice_id})
    gateway.commit()
    return InvoiceResponse.model_validate(invoice)
