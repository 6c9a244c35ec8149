"""Inventory lookups and writes used when goods are received."""

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.models.enums import StockMovementType
from posledger.models.inventory import InventoryItem, StockMovement


async def lock_inventory_items(
    db: AsyncSession, store_id: uuid.UUID, inventory_item_ids: list[uuid.UUID]
) -> dict[uuid.UUID, InventoryItem]:
    """
    Lock this store's inventory rows among `inventory_item_ids`, keyed by id.

    Rows are locked in id order, so receipts touching the same items in a
    different line order queue instead of deadlocking. Ids that do not resolve
    to an item of the store are absent from the result.
    """
    if not inventory_item_ids:
        return {}

    stmt = (
        select(InventoryItem)
        .where(
            InventoryItem.id.in_(sorted(set(inventory_item_ids))),
            InventoryItem.store_id == store_id,
        )
        .order_by(InventoryItem.id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    return {item.id: item for item in result.scalars().all()}


async def update_stock_and_cost(
    db: AsyncSession, item: InventoryItem, new_stock: int, new_cost: Decimal
) -> None:
    item.stock = new_stock
    item.cost_price = new_cost
    await db.flush()


def record_stock_movement(
    db: AsyncSession,
    item: InventoryItem,
    movement_type: StockMovementType,
    quantity: int,
    previous_stock: int,
    new_stock: int,
    reason: str,
    actor: str,
    reference_id: uuid.UUID | None = None,
) -> StockMovement:
    """Append a kardex line. The movement is attributed to the item's catalog product."""
    movement = StockMovement(
        id=uuid.uuid4(),
        store_id=item.store_id,
        inventory_item_id=item.id,
        product_id=item.catalog_product_id,
        type=movement_type,
        quantity=quantity,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reason=reason,
        reference_id=reference_id,
        recorded_by=actor,
    )
    db.add(movement)
    return movement
