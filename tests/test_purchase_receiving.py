"""Tests for purchase orders and goods receipt."""

import uuid
from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core import purchasing, reconciliation
from posledger.core.errors import AlreadyReceivedError, NotFoundError, ValidationError
from posledger.core.purchasing import OrderLine
from posledger.models.enums import (
    InstrumentStatus,
    PurchaseOrderStatus,
    PurchasePaymentStatus,
    ReferenceType,
    StockMovementType,
)
from posledger.models.inventory import StockMovement
from posledger.models.store import Store
from posledger.utils.datetime import now_utc
from tests.factories import InventoryItemFactory, PurchaseOrderFactory, StoreFactory


async def _movements(db: AsyncSession, purchase_order_id: uuid.UUID) -> list[StockMovement]:
    result = await db.execute(
        select(StockMovement)
        .where(StockMovement.reference_id == purchase_order_id)
        .order_by(StockMovement.new_stock)
    )
    return list(result.scalars().all())


class TestCreatePurchaseOrder:
    async def test_total_is_sum_of_lines(self, db_session: AsyncSession, store: Store):
        order = await reconciliation.create_purchase_order(
            db_session,
            store.id,
            uuid.uuid4(),
            [
                OrderLine(name="Gauze", quantity=10, unit_price=Decimal("5.00")),
                OrderLine(name="Alcohol 70%", quantity=5, unit_price=Decimal("8.00")),
            ],
        )

        assert order.status == PurchaseOrderStatus.PENDING
        assert order.payment_status == PurchasePaymentStatus.UNPAID
        assert order.total == Decimal("90.00")
        assert order.tax_total == Decimal("0.00")
        assert [item.subtotal for item in order.items] == [Decimal("50.00"), Decimal("40.00")]

    async def test_empty_order_is_rejected(self, db_session: AsyncSession, store: Store):
        with pytest.raises(ValidationError):
            await reconciliation.create_purchase_order(db_session, store.id, uuid.uuid4(), [])

    async def test_zero_quantity_is_rejected(self, db_session: AsyncSession, store: Store):
        with pytest.raises(ValidationError) as exc_info:
            await reconciliation.create_purchase_order(
                db_session,
                store.id,
                uuid.uuid4(),
                [OrderLine(name="Gauze", quantity=0, unit_price=Decimal("5.00"))],
            )
        assert exc_info.value.details["position"] == 0


class TestReceivePurchase:
    async def test_receive_on_credit(self, db_session: AsyncSession, store: Store):
        """10 @ 5.00 + 5 @ 8.00: stock and cost move, a 90.00 payable is due in 30 days."""
        gauze = await InventoryItemFactory.create(
            db_session, store_id=store.id, name="Gauze", stock=3, cost_price=Decimal("4.50")
        )
        alcohol = await InventoryItemFactory.create(
            db_session, store_id=store.id, name="Alcohol 70%", stock=0
        )
        order = await PurchaseOrderFactory.create(
            db_session,
            store_id=store.id,
            lines=[(gauze.id, 10, Decimal("5.00")), (alcohol.id, 5, Decimal("8.00"))],
        )

        receipt = await reconciliation.receive_purchase(
            db_session, store.id, order.id, received_by="manager-1", create_payable=True
        )

        assert receipt.purchase_order.status == PurchaseOrderStatus.COMPLETED
        assert receipt.purchase_order.received_by == "manager-1"
        assert receipt.purchase_order.received_at is not None
        # Payable is open, the order is not paid yet
        assert receipt.purchase_order.payment_status == PurchasePaymentStatus.UNPAID
        assert all(item.received_quantity == item.quantity for item in order.items)

        payable = receipt.payable
        assert payable.total_amount == Decimal("90.00")
        assert payable.outstanding_balance == Decimal("90.00")
        assert payable.status == InstrumentStatus.PENDING
        assert payable.supplier_id == order.supplier_id
        assert payable.reference_type == ReferenceType.PURCHASE
        assert payable.reference_id == order.id
        assert abs(payable.due_date - (now_utc() + timedelta(days=30))) < timedelta(minutes=1)

        await db_session.refresh(gauze)
        await db_session.refresh(alcohol)
        assert gauze.stock == 13
        assert gauze.cost_price == Decimal("5.00")
        assert alcohol.stock == 5
        assert alcohol.cost_price == Decimal("8.00")

        movements = await _movements(db_session, order.id)
        assert len(movements) == 2
        assert len(receipt.stock_movements) == 2
        by_item = {m.inventory_item_id: m for m in movements}
        assert (by_item[gauze.id].previous_stock, by_item[gauze.id].new_stock) == (3, 13)
        assert (by_item[alcohol.id].previous_stock, by_item[alcohol.id].new_stock) == (0, 5)
        assert all(m.type == StockMovementType.PURCHASE for m in movements)
        assert by_item[gauze.id].product_id == gauze.catalog_product_id
        assert by_item[gauze.id].reason == f"Purchase order receipt #{str(order.id)[:8]}"
        assert by_item[gauze.id].recorded_by == "manager-1"

    async def test_receive_paid_upfront_creates_no_payable(
        self, db_session: AsyncSession, store: Store
    ):
        item = await InventoryItemFactory.create(db_session, store_id=store.id)
        order = await PurchaseOrderFactory.create(
            db_session, store_id=store.id, lines=[(item.id, 2, Decimal("1.00"))]
        )

        receipt = await reconciliation.receive_purchase(
            db_session, store.id, order.id, received_by="manager-1"
        )

        assert receipt.payable is None
        assert receipt.purchase_order.status == PurchaseOrderStatus.COMPLETED

    async def test_explicit_due_date(self, db_session: AsyncSession, store: Store):
        order = await PurchaseOrderFactory.create(db_session, store_id=store.id)
        due = now_utc() + timedelta(days=7)

        receipt = await reconciliation.receive_purchase(
            db_session,
            store.id,
            order.id,
            received_by="manager-1",
            create_payable=True,
            due_date=due,
        )

        assert receipt.payable.due_date == due

    async def test_unlinked_and_foreign_lines_move_no_stock(
        self, db_session: AsyncSession, store: Store
    ):
        other_store = await StoreFactory.create(db_session, name="Other Farmacia")
        foreign_item = await InventoryItemFactory.create(
            db_session, store_id=other_store.id, stock=7
        )
        order = await PurchaseOrderFactory.create(
            db_session,
            store_id=store.id,
            lines=[(None, 1, Decimal("15.00")), (foreign_item.id, 4, Decimal("2.00"))],
        )

        receipt = await reconciliation.receive_purchase(
            db_session, store.id, order.id, received_by="manager-1"
        )

        assert receipt.stock_movements == []
        assert receipt.purchase_order.status == PurchaseOrderStatus.COMPLETED
        await db_session.refresh(foreign_item)
        assert foreign_item.stock == 7

    async def test_receive_twice(self, db_session: AsyncSession, store: Store):
        item = await InventoryItemFactory.create(db_session, store_id=store.id, stock=0)
        item_id = item.id
        order = await PurchaseOrderFactory.create(
            db_session, store_id=store.id, lines=[(item_id, 10, Decimal("5.00"))]
        )
        order_id = order.id

        await reconciliation.receive_purchase(
            db_session, store.id, order_id, received_by="manager-1", create_payable=True
        )

        with pytest.raises(AlreadyReceivedError) as exc_info:
            await reconciliation.receive_purchase(
                db_session, store.id, order_id, received_by="manager-1", create_payable=True
            )
        assert exc_info.value.code == "ALREADY_RECEIVED"

        await db_session.refresh(item)
        assert item.stock == 10
        assert len(await _movements(db_session, order_id)) == 1

    async def test_order_of_another_store(self, db_session: AsyncSession, store: Store):
        other_store = await StoreFactory.create(db_session, name="Other Farmacia")
        order = await PurchaseOrderFactory.create(db_session, store_id=other_store.id)

        with pytest.raises(NotFoundError):
            await reconciliation.receive_purchase(
                db_session, store.id, order.id, received_by="manager-1"
            )

    async def test_free_order_on_credit_opens_no_payable(
        self, db_session: AsyncSession, store: Store
    ):
        """Samples at 0.00: stock still moves and nothing is owed."""
        item = await InventoryItemFactory.create(db_session, store_id=store.id, stock=2)
        order = await PurchaseOrderFactory.create(
            db_session, store_id=store.id, lines=[(item.id, 3, Decimal("0.00"))]
        )
        assert order.total == Decimal("0.00")

        receipt = await reconciliation.receive_purchase(
            db_session, store.id, order.id, received_by="manager-1", create_payable=True
        )

        assert receipt.payable is None
        assert receipt.purchase_order.status == PurchaseOrderStatus.COMPLETED
        assert receipt.purchase_order.payment_status == PurchasePaymentStatus.PAID
        assert len(receipt.stock_movements) == 1
        await db_session.refresh(item)
        assert item.stock == 5
        assert item.cost_price == Decimal("0.00")

    async def test_same_item_on_two_lines(self, db_session: AsyncSession, store: Store):
        item = await InventoryItemFactory.create(db_session, store_id=store.id, stock=1)
        order = await PurchaseOrderFactory.create(
            db_session,
            store_id=store.id,
            lines=[(item.id, 2, Decimal("3.00")), (item.id, 4, Decimal("2.50"))],
        )

        receipt = await reconciliation.receive_purchase(
            db_session, store.id, order.id, received_by="manager-1"
        )

        steps = [(m.previous_stock, m.new_stock) for m in receipt.stock_movements]
        assert steps == [(1, 3), (3, 7)]
        await db_session.refresh(item)
        assert item.stock == 7
        assert item.cost_price == Decimal("2.50")


class TestListPurchaseOrders:
    async def test_newest_first_with_status_filter(self, db_session: AsyncSession, store: Store):
        older = await PurchaseOrderFactory.create(db_session, store_id=store.id)
        newer = await PurchaseOrderFactory.create(
            db_session, store_id=store.id, status=PurchaseOrderStatus.COMPLETED
        )
        await PurchaseOrderFactory.create(db_session)

        listed = await purchasing.list_purchase_orders(db_session, store.id)
        assert [o.id for o in listed] == [newer.id, older.id]

        pending = await purchasing.list_purchase_orders(
            db_session, store.id, status=PurchaseOrderStatus.PENDING
        )
        assert [o.id for o in pending] == [older.id]
