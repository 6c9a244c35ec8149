"""Accounts receivable / payable endpoints."""

from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.api.context import TenantContext, get_tenant_context
from posledger.core import instruments, payment_ledger, reconciliation
from posledger.core.db import get_db
from posledger.models.debt import Payable, Receivable
from posledger.models.enums import InstrumentKind, InstrumentStatus
from posledger.models.ledger_schemas import (
    PayableCreate,
    PayablePaymentResponse,
    PayableRead,
    PaymentCreate,
    PaymentRead,
    ReceivableCreate,
    ReceivablePaymentResponse,
    ReceivableRead,
)

router = APIRouter(prefix="/financials", tags=["financials"])


@router.get("/receivables", response_model=list[ReceivableRead])
async def list_receivables(
    status_filter: InstrumentStatus | None = None,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Receivables of the store, soonest due first."""
    return await instruments.list_instruments(db, Receivable, ctx.store_id, status=status_filter)


@router.post("/receivables", response_model=ReceivableRead, status_code=status.HTTP_201_CREATED)
async def create_receivable(
    payload: ReceivableCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    return await reconciliation.create_receivable(
        db,
        ctx.store_id,
        payload.total_amount,
        created_by=ctx.actor,
        client_id=payload.client_id,
        sale_id=payload.sale_id,
        due_date=payload.due_date,
    )


@router.post("/receivables/{receivable_id}/pay", response_model=ReceivablePaymentResponse)
async def pay_receivable(
    receivable_id: UUID,
    payload: PaymentCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Register a client payment."""
    result = await reconciliation.pay_receivable(
        db,
        ctx.store_id,
        receivable_id,
        amount=payload.amount,
        method=payload.method,
        recorded_by=ctx.actor,
        reference=payload.reference,
        shift_id=payload.shift_id,
    )
    return {"payment": result.payment, "receivable": result.instrument}


@router.get("/payables", response_model=list[PayableRead])
async def list_payables(
    status_filter: InstrumentStatus | None = None,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Payables of the store, soonest due first."""
    return await instruments.list_instruments(db, Payable, ctx.store_id, status=status_filter)


@router.post("/payables", response_model=PayableRead, status_code=status.HTTP_201_CREATED)
async def create_payable(
    payload: PayableCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    return await reconciliation.create_payable(
        db,
        ctx.store_id,
        payload.total_amount,
        created_by=ctx.actor,
        supplier_id=payload.supplier_id,
        due_date=payload.due_date,
    )


@router.post("/payables/{payable_id}/pay", response_model=PayablePaymentResponse)
async def pay_payable(
    payable_id: UUID,
    payload: PaymentCreate,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Register a payment to a supplier."""
    result = await reconciliation.pay_payable(
        db,
        ctx.store_id,
        payable_id,
        amount=payload.amount,
        method=payload.method,
        recorded_by=ctx.actor,
        reference=payload.reference,
        shift_id=payload.shift_id,
    )
    return {"payment": result.payment, "payable": result.instrument}


@router.get("/{kind}/{instrument_id}/payments", response_model=list[PaymentRead])
async def list_payments(
    kind: InstrumentKind,
    instrument_id: UUID,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Ledger rows of one instrument, oldest first."""
    return await payment_ledger.list_payments(db, ctx.store_id, kind, instrument_id)
