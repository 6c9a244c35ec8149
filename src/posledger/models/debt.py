"""Debt instrument models: accounts receivable and accounts payable."""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import ClassVar

from sqlalchemy import CheckConstraint, ForeignKey, Numeric, String
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from posledger.core.db import Base
from posledger.models.enums import InstrumentKind, InstrumentStatus, ReferenceType
from posledger.utils.datetime import now_utc

# Shared by both tables, created and dropped with the metadata
instrument_status_enum = SQLEnum(InstrumentStatus, name="instrument_status", metadata=Base.metadata)
reference_type_enum = SQLEnum(ReferenceType, name="reference_type", metadata=Base.metadata)


class DebtInstrumentMixin:
    """Columns common to receivables and payables.

    `total_amount` is fixed at creation. `outstanding_balance` only goes down,
    and `status` is re-derived from the two on every payment.
    """

    kind: ClassVar[InstrumentKind]

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    @declared_attr
    def store_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            UUID(as_uuid=True),
            ForeignKey("stores.id"),
            nullable=False,
            index=True,
        )

    # Origin document, by id only
    @declared_attr
    def reference_type(cls) -> Mapped[ReferenceType | None]:
        return mapped_column(reference_type_enum, nullable=True)

    reference_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )

    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    outstanding_balance: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    @declared_attr
    def status(cls) -> Mapped[InstrumentStatus]:
        return mapped_column(
            instrument_status_enum,
            nullable=False,
            default=InstrumentStatus.PENDING,
            index=True,
        )

    due_date: Mapped[datetime] = mapped_column(nullable=False, index=True)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False, default="System")
    created_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc)
    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=now_utc, onupdate=now_utc)

    @declared_attr.directive
    def __table_args__(cls):
        return (
            CheckConstraint("total_amount > 0", name=f"ck_{cls.__tablename__}_total_positive"),
            CheckConstraint(
                "outstanding_balance <= total_amount",
                name=f"ck_{cls.__tablename__}_balance_within_total",
            ),
            CheckConstraint(
                "outstanding_balance >= 0",
                name=f"ck_{cls.__tablename__}_balance_non_negative",
            ),
        )

    @property
    def amount_paid(self) -> Decimal:
        return self.total_amount - self.outstanding_balance

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__}(id={self.id}, store_id={self.store_id}, "
            f"balance={self.outstanding_balance}/{self.total_amount}, status={self.status})>"
        )


class Receivable(DebtInstrumentMixin, Base):
    """Money a client owes the store (usually from a sale on credit)."""

    __tablename__ = "receivables"

    kind = InstrumentKind.RECEIVABLE

    # Weak reference, lookup only
    client_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )


class Payable(DebtInstrumentMixin, Base):
    """Money the store owes a supplier (usually from a received purchase)."""

    __tablename__ = "payables"

    kind = InstrumentKind.PAYABLE

    # Weak reference, lookup only
    supplier_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        nullable=True,
        index=True,
    )
