"""Pydantic schemas for purchase orders."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from posledger.models.enums import PurchaseOrderStatus, PurchasePaymentStatus
from posledger.models.ledger_schemas import PayableRead


class PurchaseOrderItemCreate(BaseModel):
    inventory_item_id: UUID | None = Field(None, description="Empty for out-of-band costs")
    name: str = Field(..., min_length=1, max_length=200)
    quantity: int = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0, max_digits=12, decimal_places=2)


class PurchaseOrderCreate(BaseModel):
    supplier_id: UUID
    expected_date: date | None = None
    items: list[PurchaseOrderItemCreate] = Field(..., min_length=1)


class PurchaseReceive(BaseModel):
    create_payable: bool = Field(False, description="Buy on credit: open a payable")
    due_date: datetime | None = Field(None, description="Default: 30 days from now")


class PurchaseOrderItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    inventory_item_id: UUID | None = None
    name: str
    quantity: int
    received_quantity: int
    unit_price: Decimal
    subtotal: Decimal


class PurchaseOrderRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    store_id: UUID
    supplier_id: UUID
    status: PurchaseOrderStatus
    payment_status: PurchasePaymentStatus
    subtotal: Decimal
    tax_total: Decimal
    total: Decimal
    issued_at: datetime
    expected_date: date | None = None
    received_at: datetime | None = None
    received_by: str | None = None
    items: list[PurchaseOrderItemRead] = []


class PurchaseReceiptResponse(BaseModel):
    purchase_order: PurchaseOrderRead
    payable: PayableRead | None = None
    stock_movements: int
