"""Pydantic schemas for invoices"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..models import InvoiceStatus


def _normalize_currency(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v_upper = v.upper()
    if len(v_upper) != 3 or not v_upper.isalpha():
        raise ValueError("Currency must be a 3-letter ISO 4217 code")
    return v_upper


class InvoiceCreate(BaseModel):
    """Schema for creating an invoice.

    ``organization_id`` is accepted for client compatibility and always
    replaced by the caller's organization.
    """
    amount: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    currency: str = Field("USD", min_length=3, max_length=3)
    number: Optional[str] = Field(None, max_length=64)
    status: InvoiceStatus = InvoiceStatus.DRAFT
    description: Optional[str] = None
    project_id: Optional[str] = None
    issued_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    organization_id: Optional[str] = None

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Validate ISO 4217 currency code shape"""
        return _normalize_currency(v)

    class Config:
        use_enum_values = True


class InvoiceUpdate(BaseModel):
    amount: Optional[Decimal] = Field(None, ge=0, max_digits=12, decimal_places=2)
    currency: Optional[str] = Field(None, min_length=3, max_length=3)
    number: Optional[str] = Field(None, max_length=64)
    status: Optional[InvoiceStatus] = None
    description: Optional[str] = None
    project_id: Optional[str] = None
    issued_at: Optional[datetime] = None
    due_at: Optional[datetime] = None
    organization_id: Optional[str] = None

    @field_validator('currency')
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        return _normalize_currency(v)

    class Config:
        use_enum_values = True


class InvoiceResponse(BaseModel):
    id: str
    organization_id: str
    project_id: Optional[str]
    issued_by_id: Optional[str]
    number: Optional[str]
    amount: float
    currency: str
    status: str
    description: Optional[str]
    issued_at: Optional[datetime]
    due_at: Optional[datetime]
    paid_at: Optional[datetime]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class InvoiceStats(BaseModel):
    """Invoice totals for the caller's organization"""
    total: int
    draft: int
    issued: int
    paid: int
    overdue: int
    total_amount: float
    paid_amount: float
    outstanding_amount: float
    payment_rate: int
