# pos_backend/constants/inventory.py

from enum import Enum


class LocationKind(str, Enum):
    WAREHOUSE = "warehouse"
    STORE = "store"


class MovementKind(str, Enum):
    """Ledger `transaction_type`.

    `in` / `out` rows carry an unsigned magnitude; `adjustment` rows carry
    the signed delta (new - old). A transfer is an `out` at the source plus
    an `in` at the destination.
    """

    IN = "in"
    OUT = "out"
    ADJUSTMENT = "adjustment"


class ReferenceType(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    TRANSFER = "transfer"
    ADJUSTMENT = "adjustment"


class PurchaseOrderStatus(str, Enum):
    DRAFT = "draft"
    PENDING = "pending"
    PARTIAL = "partial"
    RECEIVED = "received"
    CANCELLED = "cancelled"


RECEIVABLE_PO_STATUSES = {
    PurchaseOrderStatus.DRAFT,
    PurchaseOrderStatus.PENDING,
    PurchaseOrderStatus.PARTIAL,
}


class TransferStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
