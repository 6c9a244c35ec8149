"""Purchase orders: creation, receiving, and payment-status mirroring."""

import os
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core import inventory
from posledger.core.errors import AlreadyReceivedError, NotFoundError, ValidationError
from posledger.core.instruments import build_payable
from posledger.core.logging import get_logger
from posledger.core.money import ZERO, to_non_negative_money
from posledger.models.debt import Payable
from posledger.models.enums import (
    InstrumentStatus,
    PurchaseOrderStatus,
    PurchasePaymentStatus,
    ReferenceType,
    StockMovementType,
)
from posledger.models.inventory import StockMovement
from posledger.models.purchase import PurchaseOrder, PurchaseOrderItem
from posledger.utils.datetime import days_from_now, now_utc, to_naive_utc

logger = get_logger(__name__)

PAYABLE_TERM_DAYS = int(os.getenv("PAYABLE_TERM_DAYS", "30"))

PAYMENT_STATUS_BY_INSTRUMENT_STATUS = {
    InstrumentStatus.PENDING: PurchasePaymentStatus.UNPAID,
    InstrumentStatus.PARTIAL: PurchasePaymentStatus.PARTIAL,
    InstrumentStatus.PAID: PurchasePaymentStatus.PAID,
}


@dataclass(frozen=True)
class OrderLine:
    """Requested purchase order line."""

    name: str
    quantity: int
    unit_price: Decimal
    inventory_item_id: uuid.UUID | None = None


@dataclass
class ReceiptResult:
    purchase_order: PurchaseOrder
    stock_movements: list[StockMovement]
    payable: Payable | None = None


async def create_purchase_order(
    db: AsyncSession,
    store_id: uuid.UUID,
    supplier_id: uuid.UUID,
    lines: list[OrderLine],
    expected_date: date | None = None,
) -> PurchaseOrder:
    """
    Create a PENDING, UNPAID order whose total is the sum of its lines.

    Raises:
        ValidationError: If there are no lines, a quantity is not positive or
            a price is negative
    """
    if not lines:
        raise ValidationError("A purchase order needs at least one item")

    items = []
    total = ZERO
    for position, line in enumerate(lines):
        quantity = line.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                "Item quantity must be a positive whole number",
                details={"position": position, "quantity": str(line.quantity)},
            )
        unit_price = to_non_negative_money(line.unit_price, "unit_price")
        subtotal = unit_price * line.quantity
        total += subtotal
        items.append(
            PurchaseOrderItem(
                id=uuid.uuid4(),
                position=position,
                inventory_item_id=line.inventory_item_id,
                name=line.name,
                quantity=line.quantity,
                received_quantity=0,
                unit_price=unit_price,
                subtotal=subtotal,
            )
        )

    order = PurchaseOrder(
        id=uuid.uuid4(),
        store_id=store_id,
        supplier_id=supplier_id,
        status=PurchaseOrderStatus.PENDING,
        payment_status=PurchasePaymentStatus.UNPAID,
        subtotal=total,
        tax_total=ZERO,
        total=total,
        issued_at=now_utc(),
        expected_date=expected_date,
        items=items,
    )
    db.add(order)
    await db.flush()
    return order


async def list_purchase_orders(
    db: AsyncSession,
    store_id: uuid.UUID,
    status: PurchaseOrderStatus | None = None,
    limit: int = 50,
) -> list[PurchaseOrder]:
    """Purchase orders of a store, newest first."""
    stmt = select(PurchaseOrder).where(PurchaseOrder.store_id == store_id)
    if status is not None:
        stmt = stmt.where(PurchaseOrder.status == status)
    stmt = stmt.order_by(PurchaseOrder.issued_at.desc()).limit(limit)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_purchase_order(
    db: AsyncSession,
    store_id: uuid.UUID,
    purchase_order_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> PurchaseOrder:
    stmt = select(PurchaseOrder).where(
        PurchaseOrder.id == purchase_order_id,
        PurchaseOrder.store_id == store_id,
    )
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    order = result.scalar_one_or_none()
    if order is None:
        raise NotFoundError("PurchaseOrder", str(purchase_order_id))
    return order


async def receive(
    db: AsyncSession,
    order: PurchaseOrder,
    actor: str,
    create_payable: bool = False,
    due_date: datetime | None = None,
) -> ReceiptResult:
    """
    Move a locked PENDING order's goods into stock and complete it.

    Lines linked to an inventory item of the same store raise its stock, set
    its cost to the line's unit price and leave a PURCHASE kardex line. Other
    lines are only marked received. With `create_payable` the order total
    becomes a new PENDING payable due in PAYABLE_TERM_DAYS unless `due_date`
    is given; the order stays UNPAID until that payable is paid. A zero-total
    order opens no payable and is marked PAID.

    Raises:
        AlreadyReceivedError: If the order is already COMPLETED
    """
    if order.status == PurchaseOrderStatus.COMPLETED:
        raise AlreadyReceivedError(str(order.id))

    reason = f"Purchase order receipt #{str(order.id)[:8]}"
    items = await inventory.lock_inventory_items(
        db,
        order.store_id,
        [line.inventory_item_id for line in order.items if line.inventory_item_id is not None],
    )
    movements = []
    for line in order.items:
        item = items.get(line.inventory_item_id) if line.inventory_item_id else None

        if item is not None:
            previous_stock = item.stock
            new_stock = previous_stock + line.quantity
            await inventory.update_stock_and_cost(db, item, new_stock, line.unit_price)
            movements.append(
                inventory.record_stock_movement(
                    db,
                    item,
                    StockMovementType.PURCHASE,
                    quantity=line.quantity,
                    previous_stock=previous_stock,
                    new_stock=new_stock,
                    reason=reason,
                    actor=actor,
                    reference_id=order.id,
                )
            )
        elif line.inventory_item_id is not None:
            logger.warning(
                "purchase.item_unresolved",
                purchase_order_id=str(order.id),
                inventory_item_id=str(line.inventory_item_id),
            )

        line.received_quantity = line.quantity

    order.status = PurchaseOrderStatus.COMPLETED
    order.received_at = now_utc()
    order.received_by = actor

    payable = None
    if create_payable and order.total <= ZERO:
        # Nothing is owed for a free order
        order.payment_status = PurchasePaymentStatus.PAID
        logger.info(
            "purchase.payable_skipped",
            purchase_order_id=str(order.id),
            total=str(order.total),
        )
    elif create_payable:
        payable = build_payable(
            store_id=order.store_id,
            total_amount=order.total,
            due_date=to_naive_utc(due_date) if due_date else days_from_now(PAYABLE_TERM_DAYS),
            supplier_id=order.supplier_id,
            purchase_order_id=order.id,
            created_by=actor,
        )
        db.add(payable)

    await db.flush()
    return ReceiptResult(purchase_order=order, stock_movements=movements, payable=payable)


async def sync_payment_status(db: AsyncSession, payable: Payable) -> PurchaseOrder | None:
    """Mirror a purchase-linked payable's status onto its order."""
    if payable.reference_type != ReferenceType.PURCHASE or payable.reference_id is None:
        return None

    stmt = (
        select(PurchaseOrder)
        .where(
            PurchaseOrder.id == payable.reference_id,
            PurchaseOrder.store_id == payable.store_id,
        )
        .with_for_update()
    )
    result = await db.execute(stmt)
    order = result.scalar_one_or_none()
    if order is None:
        logger.warning(
            "purchase.payment_sync_skipped",
            payable_id=str(payable.id),
            purchase_order_id=str(payable.reference_id),
        )
        return None

    order.payment_status = PAYMENT_STATUS_BY_INSTRUMENT_STATUS[payable.status]
    await db.flush()
    return order
