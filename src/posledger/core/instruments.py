"""Debt instrument rules: status derivation, payment application, creation."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core.errors import AlreadySettledError, NotFoundError, ValidationError
from posledger.core.money import ZERO, to_positive_money
from posledger.models.debt import Payable, Receivable
from posledger.models.enums import InstrumentStatus, ReferenceType

Instrument = TypeVar("Instrument", Receivable, Payable)


def derive_status(outstanding_balance: Decimal, total_amount: Decimal) -> InstrumentStatus:
    """Map a (balance, total) pair to its one and only status.

    PAID when nothing is owed, PARTIAL when something but not everything was
    paid, PENDING otherwise.
    """
    if outstanding_balance <= ZERO:
        return InstrumentStatus.PAID
    if outstanding_balance < total_amount:
        return InstrumentStatus.PARTIAL
    return InstrumentStatus.PENDING


def apply_payment(instrument: Receivable | Payable, amount: Decimal) -> Decimal:
    """
    Reduce an instrument's balance by `amount` and re-derive its status.

    The instrument is left untouched when any check fails.

    Returns:
        The new outstanding balance

    Raises:
        AlreadySettledError: If the instrument is already PAID
        ValidationError: If amount is not positive or exceeds the balance
    """
    resource = type(instrument).__name__
    if instrument.status == InstrumentStatus.PAID or instrument.outstanding_balance <= ZERO:
        raise AlreadySettledError(resource, str(instrument.id))

    amount = to_positive_money(amount)
    if amount > instrument.outstanding_balance:
        raise ValidationError(
            "Payment amount exceeds the outstanding balance",
            details={
                "resource": resource,
                "resource_id": str(instrument.id),
                "amount": str(amount),
                "outstanding_balance": str(instrument.outstanding_balance),
            },
        )

    new_balance = instrument.outstanding_balance - amount
    instrument.outstanding_balance = new_balance
    instrument.status = derive_status(new_balance, instrument.total_amount)
    return new_balance


def build_receivable(
    store_id: uuid.UUID,
    total_amount: Decimal,
    due_date: datetime,
    client_id: uuid.UUID | None = None,
    sale_id: uuid.UUID | None = None,
    created_by: str = "System",
) -> Receivable:
    """New receivable with the whole amount outstanding."""
    total = to_positive_money(total_amount, "total_amount")
    return Receivable(
        id=uuid.uuid4(),
        store_id=store_id,
        client_id=client_id,
        reference_type=ReferenceType.SALE if sale_id else None,
        reference_id=sale_id,
        total_amount=total,
        outstanding_balance=total,
        status=derive_status(total, total),
        due_date=due_date,
        created_by=created_by,
    )


def build_payable(
    store_id: uuid.UUID,
    total_amount: Decimal,
    due_date: datetime,
    supplier_id: uuid.UUID | None = None,
    purchase_order_id: uuid.UUID | None = None,
    created_by: str = "System",
) -> Payable:
    """New payable with the whole amount outstanding."""
    total = to_positive_money(total_amount, "total_amount")
    return Payable(
        id=uuid.uuid4(),
        store_id=store_id,
        supplier_id=supplier_id,
        reference_type=ReferenceType.PURCHASE if purchase_order_id else None,
        reference_id=purchase_order_id,
        total_amount=total,
        outstanding_balance=total,
        status=derive_status(total, total),
        due_date=due_date,
        created_by=created_by,
    )


async def get_instrument_for_update(
    db: AsyncSession,
    model: Type[Instrument],
    store_id: uuid.UUID,
    instrument_id: uuid.UUID,
) -> Instrument:
    """Load an instrument of this store and hold its row lock until commit.

    Concurrent payments against the same row queue here, so each one checks
    the balance left by the previous one.
    """
    stmt = (
        select(model)
        .where(model.id == instrument_id, model.store_id == store_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    result = await db.execute(stmt)
    instrument = result.scalar_one_or_none()
    if instrument is None:
        raise NotFoundError(model.__name__, str(instrument_id))
    return instrument


async def list_instruments(
    db: AsyncSession,
    model: Type[Instrument],
    store_id: uuid.UUID,
    status: InstrumentStatus | None = None,
) -> list[Instrument]:
    """Instruments of a store, soonest due first."""
    stmt = select(model).where(model.store_id == store_id)
    if status is not None:
        stmt = stmt.where(model.status == status)
    stmt = stmt.order_by(model.due_date.asc(), model.created_at.asc())
    result = await db.execute(stmt)
    return list(result.scalars().all())
