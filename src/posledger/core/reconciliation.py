"""
Reconciliation coordinator.

Every public operation here is one unit of work: validate, change the ledger
and instrument, touch the shift, touch the linked document, commit. Any error
on the way rolls the whole operation back.
"""

import os
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.core import instruments, payment_ledger, purchasing, shift_accrual
from posledger.core.db import atomic
from posledger.core.errors import NoOpenShiftError, NotFoundError, ValidationError
from posledger.core.logging import get_logger
from posledger.core.money import to_positive_money
from posledger.core.purchasing import OrderLine, ReceiptResult
from posledger.core.shift_accrual import ClosingTotals
from posledger.models.debt import Payable, Receivable
from posledger.models.enums import PaymentMethod
from posledger.models.payment import PaymentTransaction
from posledger.models.purchase import PurchaseOrder
from posledger.models.shift import Shift
from posledger.models.store import Store
from posledger.utils.datetime import days_from_now, to_naive_utc

logger = get_logger(__name__)

RECEIVABLE_TERM_DAYS = int(os.getenv("RECEIVABLE_TERM_DAYS", "30"))


@dataclass
class PaymentResult:
    """Outcome of a committed payment."""

    payment: PaymentTransaction
    instrument: Receivable | Payable
    shift: Shift | None = None
    purchase_order: PurchaseOrder | None = None


def _payment_method(method: PaymentMethod | str) -> PaymentMethod:
    try:
        return PaymentMethod(method)
    except ValueError as exc:
        raise ValidationError(
            f"Invalid payment method: {method}",
            details={"allowed": [m.value for m in PaymentMethod]},
        ) from exc


def _require_actor(actor: str | None) -> str:
    if actor is None or not str(actor).strip():
        raise ValidationError("Actor identity is required")
    return str(actor).strip()


async def _require_store(db: AsyncSession, store_id: uuid.UUID) -> Store:
    result = await db.execute(select(Store).where(Store.id == store_id))
    store = result.scalar_one_or_none()
    if store is None:
        raise NotFoundError("Store", str(store_id))
    return store


# =============================================================================
# SHIFTS
# =============================================================================


async def open_shift(
    db: AsyncSession, store_id: uuid.UUID, initial_amount: Decimal, opened_by: str
) -> Shift:
    """Open the store's cash shift. ConflictError if one is already open."""
    actor = _require_actor(opened_by)
    async with atomic(db, "open shift"):
        await _require_store(db, store_id)
        shift = await shift_accrual.open_shift(db, store_id, initial_amount, actor)

    logger.info(
        "shift.opened",
        shift_id=str(shift.id),
        store_id=str(store_id),
        opened_by=actor,
        start_balance=str(shift.start_balance),
    )
    return shift


async def close_shift(
    db: AsyncSession,
    store_id: uuid.UUID,
    end_balance: Decimal,
    closed_by: str,
    shift_id: uuid.UUID | None = None,
    expected_balance: Decimal | None = None,
    totals: ClosingTotals | None = None,
    notes: str | None = None,
) -> Shift:
    """
    Close a shift, given by id or as the store's current OPEN one.

    Raises:
        NotFoundError: If the shift (or an open shift for the store) is absent
        AlreadyClosedError: If the named shift is already CLOSED
    """
    actor = _require_actor(closed_by)
    async with atomic(db, "close shift"):
        if shift_id is not None:
            shift = await shift_accrual.get_shift_for_update(db, store_id, shift_id)
        else:
            shift = await shift_accrual.find_open_shift(db, store_id, for_update=True)
            if shift is None:
                raise NotFoundError("Open shift for store", str(store_id))

        shift = await shift_accrual.close_shift(
            db,
            shift,
            end_balance=end_balance,
            actor=actor,
            expected_balance=expected_balance,
            totals=totals,
            notes=notes,
        )

    logger.info(
        "shift.closed",
        shift_id=str(shift.id),
        store_id=str(store_id),
        closed_by=actor,
        expected_balance=str(shift.expected_balance),
        end_balance=str(shift.end_balance),
        difference=str(shift.difference),
    )
    return shift


async def get_current_shift(db: AsyncSession, store_id: uuid.UUID) -> Shift | None:
    """The store's OPEN shift, or None when the register is closed."""
    return await shift_accrual.find_open_shift(db, store_id)


async def record_sale(
    db: AsyncSession,
    store_id: uuid.UUID,
    amount: Decimal,
    method: PaymentMethod | str,
    recorded_by: str,
) -> Shift:
    """Accrue a completed sale into the store's open shift."""
    actor = _require_actor(recorded_by)
    method = _payment_method(method)
    amount = to_positive_money(amount)
    async with atomic(db, "record sale"):
        shift = await shift_accrual.find_open_shift(db, store_id)
        if shift is None:
            raise NoOpenShiftError(str(store_id))
        column = shift_accrual.SALE_ACCRUAL_COLUMNS[method]
        shift = await shift_accrual.accrue(db, store_id, shift.id, column, amount)
        if shift is None:
            # Closed between the lookup and the increment
            raise NoOpenShiftError(str(store_id))

    logger.info(
        "sale.accrued",
        shift_id=str(shift.id),
        store_id=str(store_id),
        method=method.value,
        amount=str(amount),
        recorded_by=actor,
    )
    return shift


# =============================================================================
# RECEIVABLES / PAYABLES
# =============================================================================


async def create_receivable(
    db: AsyncSession,
    store_id: uuid.UUID,
    total_amount: Decimal,
    created_by: str,
    client_id: uuid.UUID | None = None,
    sale_id: uuid.UUID | None = None,
    due_date: datetime | None = None,
) -> Receivable:
    """Open a receivable for a sale on credit."""
    actor = _require_actor(created_by)
    async with atomic(db, "create receivable"):
        await _require_store(db, store_id)
        receivable = instruments.build_receivable(
            store_id=store_id,
            total_amount=total_amount,
            due_date=to_naive_utc(due_date) if due_date else days_from_now(RECEIVABLE_TERM_DAYS),
            client_id=client_id,
            sale_id=sale_id,
            created_by=actor,
        )
        db.add(receivable)
        await db.flush()

    logger.info(
        "receivable.created",
        receivable_id=str(receivable.id),
        store_id=str(store_id),
        total_amount=str(receivable.total_amount),
    )
    return receivable


async def create_payable(
    db: AsyncSession,
    store_id: uuid.UUID,
    total_amount: Decimal,
    created_by: str,
    supplier_id: uuid.UUID | None = None,
    due_date: datetime | None = None,
) -> Payable:
    """Open a payable that is not tied to a purchase order (e.g. a service bill)."""
    actor = _require_actor(created_by)
    term = purchasing.PAYABLE_TERM_DAYS
    async with atomic(db, "create payable"):
        await _require_store(db, store_id)
        payable = instruments.build_payable(
            store_id=store_id,
            total_amount=total_amount,
            due_date=to_naive_utc(due_date) if due_date else days_from_now(term),
            supplier_id=supplier_id,
            created_by=actor,
        )
        db.add(payable)
        await db.flush()

    logger.info(
        "payable.created",
        payable_id=str(payable.id),
        store_id=str(store_id),
        total_amount=str(payable.total_amount),
    )
    return payable


async def pay_receivable(
    db: AsyncSession,
    store_id: uuid.UUID,
    receivable_id: uuid.UUID,
    amount: Decimal,
    method: PaymentMethod | str,
    recorded_by: str,
    reference: str | None = None,
    shift_id: uuid.UUID | None = None,
) -> PaymentResult:
    """
    Collect a payment from a client.

    CASH, CARD and TRANSFER collections accrue into the named shift's sales
    when that shift is OPEN.
    """
    actor = _require_actor(recorded_by)
    method = _payment_method(method)
    async with atomic(db, "pay receivable"):
        receivable = await instruments.get_instrument_for_update(
            db, Receivable, store_id, receivable_id
        )
        payment, shift = await payment_ledger.record_payment(
            db,
            receivable,
            amount=amount,
            method=method,
            actor=actor,
            reference=reference,
            shift_id=shift_id,
        )

    logger.info(
        "receivable.paid",
        receivable_id=str(receivable.id),
        payment_id=str(payment.id),
        amount=str(payment.amount),
        method=method.value,
        outstanding_balance=str(receivable.outstanding_balance),
        status=receivable.status.value,
        shift_id=str(shift.id) if shift else None,
    )
    return PaymentResult(payment=payment, instrument=receivable, shift=shift)


async def pay_payable(
    db: AsyncSession,
    store_id: uuid.UUID,
    payable_id: uuid.UUID,
    amount: Decimal,
    method: PaymentMethod | str,
    recorded_by: str,
    reference: str | None = None,
    shift_id: uuid.UUID | None = None,
) -> PaymentResult:
    """
    Pay a supplier.

    Only CASH leaves the drawer, so only CASH accrues into the shift's
    expenses. A purchase-linked payable mirrors its new status onto the order.
    """
    actor = _require_actor(recorded_by)
    method = _payment_method(method)
    async with atomic(db, "pay payable"):
        payable = await instruments.get_instrument_for_update(db, Payable, store_id, payable_id)
        payment, shift = await payment_ledger.record_payment(
            db,
            payable,
            amount=amount,
            method=method,
            actor=actor,
            reference=reference,
            shift_id=shift_id,
        )
        order = await purchasing.sync_payment_status(db, payable)

    logger.info(
        "payable.paid",
        payable_id=str(payable.id),
        payment_id=str(payment.id),
        amount=str(payment.amount),
        method=method.value,
        outstanding_balance=str(payable.outstanding_balance),
        status=payable.status.value,
        shift_id=str(shift.id) if shift else None,
        purchase_order_id=str(order.id) if order else None,
    )
    return PaymentResult(payment=payment, instrument=payable, shift=shift, purchase_order=order)


# =============================================================================
# PURCHASING
# =============================================================================


async def create_purchase_order(
    db: AsyncSession,
    store_id: uuid.UUID,
    supplier_id: uuid.UUID,
    lines: list[OrderLine],
    expected_date: date | None = None,
) -> PurchaseOrder:
    async with atomic(db, "create purchase order"):
        await _require_store(db, store_id)
        order = await purchasing.create_purchase_order(
            db, store_id, supplier_id, lines, expected_date=expected_date
        )

    logger.info(
        "purchase.created",
        purchase_order_id=str(order.id),
        store_id=str(store_id),
        total=str(order.total),
        items=len(lines),
    )
    return order


async def receive_purchase(
    db: AsyncSession,
    store_id: uuid.UUID,
    purchase_order_id: uuid.UUID,
    received_by: str,
    create_payable: bool = False,
    due_date: datetime | None = None,
) -> ReceiptResult:
    """Receive a purchase order. AlreadyReceivedError on the second attempt."""
    actor = _require_actor(received_by)
    async with atomic(db, "receive purchase"):
        order = await purchasing.get_purchase_order(
            db, store_id, purchase_order_id, for_update=True
        )
        receipt = await purchasing.receive(
            db, order, actor, create_payable=create_payable, due_date=due_date
        )

    logger.info(
        "purchase.received",
        purchase_order_id=str(order.id),
        store_id=str(store_id),
        received_by=actor,
        stock_movements=len(receipt.stock_movements),
        payable_id=str(receipt.payable.id) if receipt.payable else None,
    )
    return receipt
