"""Shift lifecycle (OPEN -> CLOSED) and running cash-drawer accruals."""

import uuid
from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core.errors import AlreadyClosedError, ConflictError, NotFoundError
from posledger.core.logging import get_logger
from posledger.core.money import ZERO, to_non_negative_money, to_positive_money
from posledger.models.enums import InstrumentKind, PaymentMethod, ShiftStatus
from posledger.models.shift import Shift
from posledger.utils.datetime import now_utc

logger = get_logger(__name__)

# Where a payment lands in the drawer. Receivable collections count as sales
# for every traceable tender; supplier payments only leave the drawer in cash.
PAYMENT_ACCRUAL_COLUMNS: dict[InstrumentKind, dict[PaymentMethod, str]] = {
    InstrumentKind.RECEIVABLE: {
        PaymentMethod.CASH: "cash_sales",
        PaymentMethod.CARD: "card_sales",
        PaymentMethod.TRANSFER: "transfer_sales",
    },
    InstrumentKind.PAYABLE: {
        PaymentMethod.CASH: "expenses_total",
    },
}

SALE_ACCRUAL_COLUMNS: dict[PaymentMethod, str] = {
    PaymentMethod.CASH: "cash_sales",
    PaymentMethod.CARD: "card_sales",
    PaymentMethod.TRANSFER: "transfer_sales",
    PaymentMethod.OTHER: "other_sales",
}


@dataclass(frozen=True)
class ClosingTotals:
    """Totals the cashier declares when closing; stored next to the accruals."""

    total_sales: Decimal | None = None
    cash: Decimal | None = None
    card: Decimal | None = None
    transfer: Decimal | None = None


def payment_accrual_column(kind: InstrumentKind, method: PaymentMethod) -> str | None:
    """Shift column a payment increments, or None when it does not touch the drawer."""
    return PAYMENT_ACCRUAL_COLUMNS[kind].get(method)


async def find_open_shift(
    db: AsyncSession, store_id: uuid.UUID, *, for_update: bool = False
) -> Shift | None:
    """The store's OPEN shift, or None."""
    stmt = select(Shift).where(Shift.store_id == store_id, Shift.status == ShiftStatus.OPEN)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_shift_for_update(db: AsyncSession, store_id: uuid.UUID, shift_id: uuid.UUID) -> Shift:
    stmt = (
        select(Shift)
        .where(Shift.id == shift_id, Shift.store_id == store_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    shift = result.scalar_one_or_none()
    if shift is None:
        raise NotFoundError("Shift", str(shift_id))
    return shift


async def open_shift(
    db: AsyncSession, store_id: uuid.UUID, initial_balance: Decimal, actor: str
) -> Shift:
    """
    Create the store's OPEN shift with zeroed accruals.

    The partial unique index on OPEN shifts backs up the lookup, so two
    concurrent opens cannot both insert.

    Raises:
        ConflictError: If the store already has an OPEN shift
    """
    start_balance = to_non_negative_money(initial_balance, "initial_balance")

    existing = await find_open_shift(db, store_id)
    if existing is not None:
        raise ConflictError(
            "Store already has an open shift",
            details={
                "shift_id": str(existing.id),
                "opened_by": existing.opened_by,
                "start_time": existing.start_time.isoformat(),
            },
        )

    shift = Shift(
        id=uuid.uuid4(),
        store_id=store_id,
        status=ShiftStatus.OPEN,
        opened_by=actor,
        start_time=now_utc(),
        start_balance=start_balance,
        cash_sales=ZERO,
        card_sales=ZERO,
        transfer_sales=ZERO,
        other_sales=ZERO,
        expenses_total=ZERO,
    )
    db.add(shift)
    try:
        await db.flush()
    except IntegrityError as exc:
        raise ConflictError(
            "Store already has an open shift",
            details={"store_id": str(store_id)},
        ) from exc
    return shift


async def accrue(
    db: AsyncSession,
    store_id: uuid.UUID,
    shift_id: uuid.UUID,
    column: str,
    amount: Decimal,
) -> Shift | None:
    """
    Add `amount` to one accrual column of an OPEN shift.

    The increment happens in SQL (col = col + amount) so concurrent accruals
    never overwrite each other. Returns the refreshed shift, or None when the
    shift is missing, belongs to another store, or is no longer OPEN.
    """
    amount = to_positive_money(amount)
    target = getattr(Shift, column)
    stmt = (
        update(Shift)
        .where(
            Shift.id == shift_id,
            Shift.store_id == store_id,
            Shift.status == ShiftStatus.OPEN,
        )
        .values({column: target + amount})
        .returning(Shift)
        .execution_options(synchronize_session=False, populate_existing=True)
    )
    result = await db.execute(stmt)
    shift = result.scalar_one_or_none()
    if shift is None:
        logger.warning(
            "shift.accrual_skipped",
            shift_id=str(shift_id),
            store_id=str(store_id),
            column=column,
        )
        return None

    logger.info("shift.accrued", shift_id=str(shift_id), column=column, amount=str(amount))
    return shift


async def close_shift(
    db: AsyncSession,
    shift: Shift,
    end_balance: Decimal,
    actor: str,
    expected_balance: Decimal | None = None,
    totals: ClosingTotals | None = None,
    notes: str | None = None,
) -> Shift:
    """
    Freeze a locked OPEN shift.

    `difference = end_balance - expected_balance`: positive is a surplus,
    negative a shortage. Without a declared expected balance the accrued one
    (start + cash sales - cash expenses) is used.

    Raises:
        AlreadyClosedError: If the shift is not OPEN (nothing is modified)
    """
    if shift.status != ShiftStatus.OPEN:
        raise AlreadyClosedError(str(shift.id))

    end_balance = to_non_negative_money(end_balance, "end_balance")
    if expected_balance is None:
        expected_balance = shift.expected_cash
    else:
        expected_balance = to_non_negative_money(expected_balance, "expected_balance")

    totals = totals or ClosingTotals()
    declared = {
        "declared_total_sales": totals.total_sales,
        "declared_cash": totals.cash,
        "declared_card": totals.card,
        "declared_transfer": totals.transfer,
    }
    for field, value in declared.items():
        if value is not None:
            declared[field] = to_non_negative_money(value, field)

    shift.end_balance = end_balance
    shift.expected_balance = expected_balance
    shift.difference = end_balance - expected_balance
    for field, value in declared.items():
        setattr(shift, field, value)
    shift.notes = notes
    shift.closed_by = actor
    shift.end_time = now_utc()
    shift.status = ShiftStatus.CLOSED

    await db.flush()
    return shift


async def list_shifts(db: AsyncSession, store_id: uuid.UUID, limit: int = 50) -> list[Shift]:
    """Shift history of a store, newest first."""
    stmt = (
        select(Shift)
        .where(Shift.store_id == store_id)
        .order_by(Shift.start_time.desc())
        .limit(limit)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
