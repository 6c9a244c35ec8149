"""Shift model: a cash-register session and its running accrual totals."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Enum as SQLEnum
from sqlalchemy import ForeignKey, Index, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from posledger.core.db import Base
from posledger.models.enums import ShiftStatus
from posledger.utils.datetime import now_utc


def _money_column(nullable: bool = False):
    if nullable:
        return mapped_column(Numeric(12, 2), nullable=True)
    return mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))


class Shift(Base):
    """Cash shift for one store.

    Accrual totals only grow while the shift is OPEN and are written with
    SQL-side increments. Closing fields are written once, on close.
    """

    __tablename__ = "shifts"
    __table_args__ = (
        # At most one OPEN shift per store
        Index(
            "uq_shifts_one_open_per_store",
            "store_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    store_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("stores.id"),
        nullable=False,
        index=True,
    )

    status: Mapped[ShiftStatus] = mapped_column(
        SQLEnum(ShiftStatus, name="shift_status"),
        nullable=False,
        default=ShiftStatus.OPEN,
        index=True,
    )

    opened_by: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)
    start_balance: Mapped[Decimal] = _money_column()

    # Running accruals
    cash_sales: Mapped[Decimal] = _money_column()
    card_sales: Mapped[Decimal] = _money_column()
    transfer_sales: Mapped[Decimal] = _money_column()
    other_sales: Mapped[Decimal] = _money_column()
    expenses_total: Mapped[Decimal] = _money_column()

    # Closing
    end_time: Mapped[datetime | None] = mapped_column(nullable=True)
    closed_by: Mapped[str | None] = mapped_column(String(100), nullable=True)
    end_balance: Mapped[Decimal | None] = _money_column(nullable=True)
    expected_balance: Mapped[Decimal | None] = _money_column(nullable=True)
    difference: Mapped[Decimal | None] = _money_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Totals declared by the cashier at close, kept next to the accrued ones
    declared_total_sales: Mapped[Decimal | None] = _money_column(nullable=True)
    declared_cash: Mapped[Decimal | None] = _money_column(nullable=True)
    declared_card: Mapped[Decimal | None] = _money_column(nullable=True)
    declared_transfer: Mapped[Decimal | None] = _money_column(nullable=True)

    @property
    def is_open(self) -> bool:
        return self.status == ShiftStatus.OPEN

    @property
    def total_sales(self) -> Decimal:
        """Accrued revenue across all tenders."""
        return self.cash_sales + self.card_sales + self.transfer_sales + self.other_sales

    @property
    def expected_cash(self) -> Decimal:
        """Cash that should be in the drawer: start + cash in - cash paid out."""
        return self.start_balance + self.cash_sales - self.expenses_total

    def __repr__(self) -> str:
        return f"<Shift(id={self.id}, store_id={self.store_id}, status={self.status})>"
