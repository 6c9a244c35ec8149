"""Append-only payment ledger."""

import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core import shift_accrual
from posledger.core.instruments import apply_payment
from posledger.models.debt import Payable, Receivable
from posledger.models.enums import InstrumentKind, PaymentMethod
from posledger.models.payment import PaymentTransaction
from posledger.models.shift import Shift
from posledger.utils.datetime import now_utc


async def record_payment(
    db: AsyncSession,
    instrument: Receivable | Payable,
    amount: Decimal,
    method: PaymentMethod,
    actor: str,
    reference: str | None = None,
    shift_id: uuid.UUID | None = None,
) -> tuple[PaymentTransaction, Shift | None]:
    """
    Apply a payment to a locked instrument and log it.

    Must run inside a unit of work: the balance change, the ledger row and the
    shift accrual commit or roll back together. The instrument is validated
    before anything is written.

    Returns:
        (payment row, accrued shift or None when the drawer was not touched)
    """
    previous_balance = instrument.outstanding_balance
    applied = previous_balance - apply_payment(instrument, amount)
    payment = PaymentTransaction(
        id=uuid.uuid4(),
        store_id=instrument.store_id,
        instrument_id=instrument.id,
        instrument_kind=instrument.kind,
        amount=applied,
        method=method,
        reference=reference,
        recorded_by=actor,
        shift_id=shift_id,
        created_at=now_utc(),
    )
    db.add(payment)
    await db.flush()

    shift = None
    column = shift_accrual.payment_accrual_column(instrument.kind, method)
    if shift_id is not None and column is not None:
        shift = await shift_accrual.accrue(db, instrument.store_id, shift_id, column, applied)

    return payment, shift


async def list_payments(
    db: AsyncSession,
    store_id: uuid.UUID,
    kind: InstrumentKind,
    instrument_id: uuid.UUID,
) -> list[PaymentTransaction]:
    """Payments applied to one instrument, oldest first."""
    stmt = (
        select(PaymentTransaction)
        .where(
            PaymentTransaction.store_id == store_id,
            PaymentTransaction.instrument_kind == kind,
            PaymentTransaction.instrument_id == instrument_id,
        )
        .order_by(PaymentTransaction.created_at.asc())
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
