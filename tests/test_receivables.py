"""Tests for receivable creation and collection."""

import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core import instruments, payment_ledger, reconciliation
from posledger.core.errors import AlreadySettledError, NotFoundError, ValidationError
from posledger.models.debt import Receivable
from posledger.models.enums import (
    InstrumentKind,
    InstrumentStatus,
    PaymentMethod,
    ReferenceType,
    ShiftStatus,
)
from posledger.models.payment import PaymentTransaction
from posledger.models.store import Store
from posledger.utils.datetime import now_utc
from tests.factories import ReceivableFactory, ShiftFactory, StoreFactory


async def _payment_count(db: AsyncSession, receivable_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(PaymentTransaction)
        .where(PaymentTransaction.instrument_id == receivable_id)
    )
    return result.scalar_one()


class TestCreateReceivable:
    async def test_create_for_sale_on_credit(self, db_session: AsyncSession, store: Store):
        sale_id = uuid.uuid4()
        receivable = await reconciliation.create_receivable(
            db_session,
            store.id,
            Decimal("1000.00"),
            created_by="cashier-1",
            client_id=uuid.uuid4(),
            sale_id=sale_id,
        )

        assert receivable.outstanding_balance == Decimal("1000.00")
        assert receivable.status == InstrumentStatus.PENDING
        assert receivable.reference_type == ReferenceType.SALE
        assert receivable.reference_id == sale_id
        assert receivable.created_by == "cashier-1"
        # Default term is 30 days
        assert timedelta(days=29) < receivable.due_date - now_utc() <= timedelta(days=30)

    async def test_aware_due_date_is_stored_as_naive_utc(
        self, db_session: AsyncSession, store: Store
    ):
        due = datetime(2030, 1, 1, 12, 0, tzinfo=timezone(timedelta(hours=-3)))
        receivable = await reconciliation.create_receivable(
            db_session, store.id, Decimal("10.00"), created_by="cashier-1", due_date=due
        )
        assert receivable.due_date == datetime(2030, 1, 1, 15, 0)

    async def test_unknown_store(self, db_session: AsyncSession):
        with pytest.raises(NotFoundError):
            await reconciliation.create_receivable(
                db_session, uuid.uuid4(), Decimal("10.00"), created_by="cashier-1"
            )

    async def test_actor_is_required(self, db_session: AsyncSession, store: Store):
        with pytest.raises(ValidationError, match="Actor"):
            await reconciliation.create_receivable(
                db_session, store.id, Decimal("10.00"), created_by="  "
            )

    async def test_listing_is_ordered_by_due_date(self, db_session: AsyncSession, store: Store):
        later = await ReceivableFactory.create(
            db_session, store_id=store.id, due_date=now_utc() + timedelta(days=20)
        )
        sooner = await ReceivableFactory.create(
            db_session, store_id=store.id, due_date=now_utc() + timedelta(days=2)
        )
        paid = await ReceivableFactory.create(
            db_session,
            store_id=store.id,
            outstanding_balance=Decimal("0.00"),
            due_date=now_utc() + timedelta(days=1),
        )

        listed = await instruments.list_instruments(db_session, Receivable, store.id)
        assert [r.id for r in listed] == [paid.id, sooner.id, later.id]

        pending = await instruments.list_instruments(
            db_session, Receivable, store.id, status=InstrumentStatus.PENDING
        )
        assert [r.id for r in pending] == [sooner.id, later.id]


class TestPayReceivable:
    async def test_partial_then_full_payment(self, db_session: AsyncSession, store: Store):
        """1000 owed: 400 cash leaves 600 PARTIAL, 600 transfer settles it."""
        receivable = await ReceivableFactory.create(
            db_session, store_id=store.id, total_amount=Decimal("1000.00")
        )

        first = await reconciliation.pay_receivable(
            db_session,
            store.id,
            receivable.id,
            amount=Decimal("400.00"),
            method=PaymentMethod.CASH,
            recorded_by="cashier-1",
        )
        assert first.instrument.outstanding_balance == Decimal("600.00")
        assert first.instrument.status == InstrumentStatus.PARTIAL
        assert first.payment.amount == Decimal("400.00")
        assert first.payment.instrument_kind == InstrumentKind.RECEIVABLE
        assert first.shift is None

        second = await reconciliation.pay_receivable(
            db_session,
            store.id,
            receivable.id,
            amount="600",
            method="TRANSFER",
            recorded_by="cashier-1",
            reference="TRX-0042",
        )
        assert second.instrument.outstanding_balance == Decimal("0.00")
        assert second.instrument.status == InstrumentStatus.PAID
        assert second.payment.reference == "TRX-0042"

        payments = await payment_ledger.list_payments(
            db_session, store.id, InstrumentKind.RECEIVABLE, receivable.id
        )
        assert [p.amount for p in payments] == [Decimal("400.00"), Decimal("600.00")]
        assert sum(p.amount for p in payments) == receivable.total_amount

    async def test_overpayment_is_rejected_without_side_effects(
        self, db_session: AsyncSession, store: Store
    ):
        receivable = await ReceivableFactory.create(
            db_session,
            store_id=store.id,
            total_amount=Decimal("1000.00"),
            outstanding_balance=Decimal("600.00"),
        )

        with pytest.raises(ValidationError):
            await reconciliation.pay_receivable(
                db_session,
                store.id,
                receivable.id,
                amount=Decimal("700.00"),
                method=PaymentMethod.CASH,
                recorded_by="cashier-1",
            )

        await db_session.refresh(receivable)
        assert receivable.outstanding_balance == Decimal("600.00")
        assert receivable.status == InstrumentStatus.PARTIAL
        assert await _payment_count(db_session, receivable.id) == 0

    async def test_settled_receivable_rejects_payment(
        self, db_session: AsyncSession, store: Store
    ):
        receivable = await ReceivableFactory.create(
            db_session, store_id=store.id, outstanding_balance=Decimal("0.00")
        )
        receivable_id = receivable.id

        with pytest.raises(AlreadySettledError):
            await reconciliation.pay_receivable(
                db_session,
                store.id,
                receivable.id,
                amount=Decimal("1.00"),
                method=PaymentMethod.CASH,
                recorded_by="cashier-1",
            )

        assert await _payment_count(db_session, receivable_id) == 0

    async def test_receivable_of_another_store_is_not_found(
        self, db_session: AsyncSession, store: Store
    ):
        other_store = await StoreFactory.create(db_session, name="Other Farmacia")
        receivable = await ReceivableFactory.create(db_session, store_id=other_store.id)

        with pytest.raises(NotFoundError):
            await reconciliation.pay_receivable(
                db_session,
                store.id,
                receivable.id,
                amount=Decimal("10.00"),
                method=PaymentMethod.CASH,
                recorded_by="cashier-1",
            )

        await db_session.refresh(receivable)
        assert receivable.outstanding_balance == Decimal("1000.00")

    async def test_invalid_method_is_rejected(self, db_session: AsyncSession, store: Store):
        receivable = await ReceivableFactory.create(db_session, store_id=store.id)

        with pytest.raises(ValidationError) as exc_info:
            await reconciliation.pay_receivable(
                db_session,
                store.id,
                receivable.id,
                amount=Decimal("10.00"),
                method="CHEQUE",
                recorded_by="cashier-1",
            )
        assert "CASH" in exc_info.value.details["allowed"]

    @pytest.mark.parametrize(
        "method,column",
        [
            (PaymentMethod.CASH, "cash_sales"),
            (PaymentMethod.CARD, "card_sales"),
            (PaymentMethod.TRANSFER, "transfer_sales"),
        ],
    )
    async def test_collection_accrues_into_open_shift(
        self, db_session: AsyncSession, store: Store, method, column
    ):
        shift = await ShiftFactory.create(db_session, store_id=store.id)
        receivable = await ReceivableFactory.create(db_session, store_id=store.id)

        result = await reconciliation.pay_receivable(
            db_session,
            store.id,
            receivable.id,
            amount=Decimal("250.00"),
            method=method,
            recorded_by="cashier-1",
            shift_id=shift.id,
        )

        assert result.shift is not None
        assert getattr(result.shift, column) == Decimal("250.00")
        assert result.shift.total_sales == Decimal("250.00")
        assert result.shift.expenses_total == Decimal("0.00")
        assert result.payment.shift_id == shift.id

    async def test_other_method_does_not_touch_the_drawer(
        self, db_session: AsyncSession, store: Store
    ):
        shift = await ShiftFactory.create(db_session, store_id=store.id)
        receivable = await ReceivableFactory.create(db_session, store_id=store.id)

        result = await reconciliation.pay_receivable(
            db_session,
            store.id,
            receivable.id,
            amount=Decimal("100.00"),
            method=PaymentMethod.OTHER,
            recorded_by="cashier-1",
            shift_id=shift.id,
        )

        assert result.shift is None
        assert result.instrument.outstanding_balance == Decimal("900.00")
        await db_session.refresh(shift)
        assert shift.total_sales == Decimal("0.00")

    async def test_closed_shift_is_not_accrued(self, db_session: AsyncSession, store: Store):
        shift = await ShiftFactory.create(
            db_session, store_id=store.id, status=ShiftStatus.CLOSED
        )
        receivable = await ReceivableFactory.create(db_session, store_id=store.id)

        result = await reconciliation.pay_receivable(
            db_session,
            store.id,
            receivable.id,
            amount=Decimal("100.00"),
            method=PaymentMethod.CASH,
            recorded_by="cashier-1",
            shift_id=shift.id,
        )

        # Payment is still recorded against the receivable
        assert result.shift is None
        assert result.payment.shift_id == shift.id
        assert result.instrument.outstanding_balance == Decimal("900.00")
        await db_session.refresh(shift)
        assert shift.cash_sales == Decimal("0.00")
