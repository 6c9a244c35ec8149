"""Purchase order endpoints (create, list, read, receive)."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.api.context import TenantContext, get_tenant_context
from posledger.core import purchasing, reconciliation
from posledger.core.db import get_db
from posledger.core.purchasing import OrderLine
from posledger.models.enums import PurchaseOrderStatus
from posledger.models.purchase_schemas import (
    PurchaseOrderCreate,
    PurchaseOrderRead,
    PurchaseReceiptResponse,
    PurchaseReceive,
)

router = APIRouter(prefix="/purchases", tags=["purchases"])


@router.post("", response_model=PurchaseOrderRead, status_code=status.HTTP_201_CREATED)
async def create_purchase_order(
    payload: PurchaseOrderCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    lines = [
        OrderLine(
            name=item.name,
            quantity=item.quantity,
            unit_price=item.unit_price,
            inventory_item_id=item.inventory_item_id,
        )
        for item in payload.items
    ]
    return await reconciliation.create_purchase_order(
        db, ctx.store_id, payload.supplier_id, lines, expected_date=payload.expected_date
    )


@router.get("", response_model=list[PurchaseOrderRead])
async def list_purchase_orders(
    status_filter: PurchaseOrderStatus | None = None,
    limit: int = 50,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Purchase orders of the store, newest first."""
    limit = min(max(limit, 1), 500)
    return await purchasing.list_purchase_orders(
        db, ctx.store_id, status=status_filter, limit=limit
    )


@router.get("/{purchase_order_id}", response_model=PurchaseOrderRead)
async def get_purchase_order(
    purchase_order_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    return await purchasing.get_purchase_order(db, ctx.store_id, purchase_order_id)


@router.post("/{purchase_order_id}/receive", response_model=PurchaseReceiptResponse)
async def receive_purchase(
    purchase_order_id: UUID,
    payload: PurchaseReceive,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Receive goods into stock; optionally open a payable for the order total."""
    receipt = await reconciliation.receive_purchase(
        db,
        ctx.store_id,
        purchase_order_id,
        received_by=ctx.actor,
        create_payable=payload.create_payable,
        due_date=payload.due_date,
    )
    return {
        "purchase_order": receipt.purchase_order,
        "payable": receipt.payable,
        "stock_movements": len(receipt.stock_movements),
    }
