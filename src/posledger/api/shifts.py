"""Shift endpoints (open, close, current, history, sale accrual)."""

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from posledger.api.context import TenantContext, get_tenant_context
from posledger.core import reconciliation, shift_accrual
from posledger.core.db import get_db
from posledger.core.shift_accrual import ClosingTotals
from posledger.models.shift_schemas import SaleAccrual, ShiftClose, ShiftOpen, ShiftRead

router = APIRouter(prefix="/shifts", tags=["shifts"])


@router.post("/open", response_model=ShiftRead, status_code=status.HTTP_201_CREATED)
async def open_shift(
    payload: ShiftOpen,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Open the store's cash shift. 409 if one is already open."""
    return await reconciliation.open_shift(db, ctx.store_id, payload.initial_amount, ctx.actor)


@router.post("/close", response_model=ShiftRead)
async def close_shift(
    payload: ShiftClose,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Close a shift and record the drawer difference."""
    return await reconciliation.close_shift(
        db,
        ctx.store_id,
        end_balance=payload.end_balance,
        closed_by=ctx.actor,
        shift_id=payload.shift_id,
        expected_balance=payload.expected_balance,
        totals=ClosingTotals(
            total_sales=payload.total_sales,
            cash=payload.total_cash,
            card=payload.total_card,
            transfer=payload.total_transfer,
        ),
        notes=payload.notes,
    )


@router.get(
    "/current",
    response_model=ShiftRead,
    responses={204: {"description": "No open shift"}},
)
async def get_current_shift(
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Current open shift, or 204 when the register is closed."""
    shift = await reconciliation.get_current_shift(db, ctx.store_id)
    if shift is None:
        return Response(status_code=status.HTTP_204_NO_CONTENT)
    return shift


@router.get("", response_model=list[ShiftRead])
async def list_shifts(
    limit: int = 50,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Shift history, newest first."""
    limit = min(max(limit, 1), 500)
    return await shift_accrual.list_shifts(db, ctx.store_id, limit=limit)


@router.post("/current/sales", response_model=ShiftRead)
async def record_sale(
    payload: SaleAccrual,
    ctx: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Add a completed sale to the open shift. 409 when the register is closed."""
    return await reconciliation.record_sale(
        db, ctx.store_id, payload.amount, payload.method, ctx.actor
    )
