"""Invoice model - billing document owned directly by an organization"""

import enum

from sqlalchemy import Column, String, Text, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import relationship, validates

from .base import Base, UTCDateTime, generate_id, utcnow


class InvoiceStatus(str, enum.Enum):
    DRAFT = "draft"
    ISSUED = "issued"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class Invoice(Base):
    __tablename__ = "invoice"
    __table_args__ = (
        CheckConstraint(
            "status IN ('draft', 'issued', 'paid', 'overdue', 'cancelled')",
            name="ck_invoice_status",
        ),
        CheckConstraint("amount >= 0", name="ck_invoice_amount_non_negative"),
        Index("ix_invoice_organization_id", "organization_id"),
    )

    id = Column(String(36), primary_key=True, default=generate_id)
    organization_id = Column(
        String(36), ForeignKey("organization.id", ondelete="CASCADE"), nullable=False
    )
    project_id = Column(String(36), ForeignKey("project.id", ondelete="SET NULL"), nullable=True)
    issued_by_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    number = Column(Text, nullable=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(Text, nullable=False, default="USD")
    status = Column(Text, nullable=False, default=InvoiceStatus.DRAFT.value)
    description = Column(Text, nullable=True)
    issued_at = Column(UTCDateTime, nullable=True)
    due_at = Column(UTCDateTime, nullable=True)
    paid_at = Column(UTCDateTime, nullable=True)
    created_at = Column(UTCDateTime, nullable=False, default=utcnow)
    updated_at = Column(UTCDateTime, nullable=False, default=utcnow, onupdate=utcnow)

    # Relationships
    organization = relationship("Organization", back_populates="invoices")
    project = relationship("Project", back_populates="invoices")
    issued_by = relationship("User")

    @validates('currency')
    def validate_currency(self, key, value):
        """ISO 4217 alpha code, stored upper-case"""
        if not value or len(value) != 3 or not value.isalpha():
            raise ValueError("Currency must be a 3-letter ISO 4217 code")
        return value.upper()

    def __repr__(self):
        return f"<Invoice(id={self.id}, amount={self.amount}, status='{self.status}')>"
