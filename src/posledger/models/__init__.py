"""Domain models package."""

from posledger.models.debt import Payable, Receivable
from posledger.models.enums import (
    InstrumentKind,
    InstrumentStatus,
    PaymentMethod,
    PurchaseOrderStatus,
    PurchasePaymentStatus,
    ReferenceType,
    ShiftStatus,
    StockMovementType,
)
from posledger.models.inventory import InventoryItem, StockMovement
from posledger.models.payment import PaymentTransaction
from posledger.models.purchase import PurchaseOrder, PurchaseOrderItem
from posledger.models.shift import Shift
from posledger.models.store import Store

__all__ = [
    "InstrumentKind",
    "InstrumentStatus",
    "InventoryItem",
    "Payable",
    "PaymentMethod",
    "PaymentTransaction",
    "PurchaseOrder",
    "PurchaseOrderItem",
    "PurchaseOrderStatus",
    "PurchasePaymentStatus",
    "Receivable",
    "ReferenceType",
    "Shift",
    "ShiftStatus",
    "StockMovement",
    "StockMovementType",
    "Store",
]
