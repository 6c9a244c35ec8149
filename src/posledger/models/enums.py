"""
Enums for domain models.
Closed sets for every status and type tag so invalid states cannot be stored.
"""

import enum


class ShiftStatus(str, enum.Enum):
    """Shift lifecycle states. CLOSED is terminal."""

    OPEN = "OPEN"
    CLOSED = "CLOSED"


class InstrumentStatus(str, enum.Enum):
    """Debt instrument settlement states, derived from the running balance."""

    PENDING = "PENDING"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class InstrumentKind(str, enum.Enum):
    """Which side of the ledger a payment applies to."""

    RECEIVABLE = "RECEIVABLE"
    PAYABLE = "PAYABLE"


class PaymentMethod(str, enum.Enum):
    """Tender used for a payment or sale."""

    CASH = "CASH"
    CARD = "CARD"
    TRANSFER = "TRANSFER"
    OTHER = "OTHER"


class ReferenceType(str, enum.Enum):
    """Kind of document an instrument originated from."""

    SALE = "SALE"
    PURCHASE = "PURCHASE"


class PurchaseOrderStatus(str, enum.Enum):
    """Receiving state of a purchase order. COMPLETED is terminal."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"


class PurchasePaymentStatus(str, enum.Enum):
    """Payment state of a purchase order, mirrored from its payable."""

    UNPAID = "UNPAID"
    PARTIAL = "PARTIAL"
    PAID = "PAID"


class StockMovementType(str, enum.Enum):
    """Reason class of an inventory movement."""

    SALE = "SALE"
    PURCHASE = "PURCHASE"
    ADJUSTMENT = "ADJUSTMENT"
    RETURN = "RETURN"
