"""Pydantic schemas for the shift API."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from posledger.models.enums import PaymentMethod, ShiftStatus


class ShiftOpen(BaseModel):
    """Schema for opening a shift."""

    initial_amount: Decimal = Field(Decimal("0.00"), ge=0, max_digits=12, decimal_places=2)


class ShiftClose(BaseModel):
    """Schema for closing a shift (by id, or the store's current one)."""

    shift_id: UUID | None = Field(None, description="Default: the store's open shift")
    end_balance: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)
    expected_balance: Decimal | None = Field(
        None,
        ge=0,
        max_digits=12,
        decimal_places=2,
        description="Default: start balance + cash sales - cash expenses",
    )
    total_sales: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    total_cash: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    total_card: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    total_transfer: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    notes: str | None = Field(None, max_length=1000)


class SaleAccrual(BaseModel):
    """A completed sale to add to the open shift."""

    amount: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    method: PaymentMethod


class ShiftRead(BaseModel):
    """Schema for reading a shift."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    store_id: UUID
    status: ShiftStatus
    opened_by: str
    start_time: datetime
    start_balance: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    transfer_sales: Decimal
    other_sales: Decimal
    expenses_total: Decimal
    total_sales: Decimal
    expected_cash: Decimal
    end_time: datetime | None = None
    closed_by: str | None = None
    end_balance: Decimal | None = None
    expected_balance: Decimal | None = None
    difference: Decimal | None = None
    notes: str | None = None
    declared_total_sales: Decimal | None = None
    declared_cash: Decimal | None = None
    declared_card: Decimal | None = None
    declared_transfer: Decimal | None = None
