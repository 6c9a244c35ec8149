"""Pydantic schemas for receivables, payables and payments."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from posledger.models.enums import (
    InstrumentKind,
    InstrumentStatus,
    PaymentMethod,
    ReferenceType,
)


class PaymentCreate(BaseModel):
    """Schema for paying a receivable or payable."""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: PaymentMethod
    reference: str | None = Field(None, max_length=255)
    shift_id: UUID | None = Field(None, description="Open shift to accrue into")


class ReceivableCreate(BaseModel):
    total_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    client_id: UUID | None = None
    sale_id: UUID | None = None
    due_date: datetime | None = None


class PayableCreate(BaseModel):
    total_amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    supplier_id: UUID | None = None
    due_date: datetime | None = None


class InstrumentRead(BaseModel):
    """Fields shared by receivables and payables."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    store_id: UUID
    reference_type: ReferenceType | None = None
    reference_id: UUID | None = None
    total_amount: Decimal
    outstanding_balance: Decimal
    amount_paid: Decimal
    status: InstrumentStatus
    due_date: datetime
    created_at: datetime


class ReceivableRead(InstrumentRead):
    client_id: UUID | None = None


class PayableRead(InstrumentRead):
    supplier_id: UUID | None = None


class PaymentRead(BaseModel):
    """Schema for reading a ledger row."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    instrument_id: UUID
    instrument_kind: InstrumentKind
    amount: Decimal
    method: PaymentMethod
    reference: str | None = None
    recorded_by: str
    shift_id: UUID | None = None
    created_at: datetime


class ReceivablePaymentResponse(BaseModel):
    payment: PaymentRead
    receivable: ReceivableRead


class PayablePaymentResponse(BaseModel):
    payment: PaymentRead
    payable: PayableRead
