"""PaymentTransaction model: the append-only payment ledger."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import CheckConstraint, ForeignKey, Index, Numeric, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from posledger.core.db import Base
from posledger.models.enums import InstrumentKind, PaymentMethod
from posledger.utils.datetime import now_utc


class PaymentTransaction(Base):
    """
    One payment applied to exactly one receivable or payable.

    Rows are never updated or deleted; a correction is a new row.

    Attributes:
        instrument_id: Receivable or payable id (see instrument_kind)
        amount: Strictly positive, never above the balance at creation time
        method: Tender used
        reference: External reference (check number, transfer id)
        recorded_by: Actor that registered the payment
        shift_id: Shift that was named when the payment was taken (weak ref)
    """

    __tablename__ = "payment_transactions"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payment_transactions_amount_positive"),
        Index("ix_payment_transactions_instrument", "instrument_kind", "instrument_id"),
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

    instrument_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False)

    instrument_kind: Mapped[InstrumentKind] = mapped_column(
        SQLEnum(InstrumentKind, name="instrument_kind"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    method: Mapped[PaymentMethod] = mapped_column(
        SQLEnum(PaymentMethod, name="payment_method"),
        nullable=False,
    )

    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    recorded_by: Mapped[str] = mapped_column(String(100), nullable=False)

    shift_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc, index=True)

    def __repr__(self) -> str:
        return (
            f"<PaymentTransaction(id={self.id}, {self.instrument_kind}={self.instrument_id}, "
            f"amount={self.amount}, method={self.method})>"
        )
