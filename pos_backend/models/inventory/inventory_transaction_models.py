from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Index, CheckConstraint, event, func
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.constants.inventory import MovementKind
from pos_backend.models.base.mixins import utcnow


class LedgerImmutableError(RuntimeError):
    pass


class InventoryTransaction(Base):
    """One row per balance mutation. APPEND-ONLY.

    ``quantity`` is the unsigned magnitude for ``in``/``out`` and the signed
    delta (new - old) for ``adjustment``.
    """

    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True, index=True)

    location_type = Column(String(20), nullable=False)
    location_id = Column(Integer, nullable=False)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=True, index=True)

    transaction_type = Column(String(20), nullable=False, index=True)
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_cost = Column(Numeric(12, 2), nullable=True)
    reference_type = Column(String(20), nullable=False)
    reference_id = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)

    created_by_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now(), index=True)

    product = relationship("Product", lazy="selectin")
    created_by = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint("transaction_type IN ('in', 'out', 'adjustment')", name="ck_inventory_transaction_type"),
        CheckConstraint("location_type IN ('warehouse', 'store')", name="ck_inventory_transaction_location_type"),
        CheckConstraint(
            "transaction_type = 'adjustment' OR quantity > 0",
            name="ck_inventory_transaction_magnitude_positive",
        ),
        Index("ix_inventory_transaction_location", "location_type", "location_id"),
        Index("ix_inventory_transaction_reference", "reference_type", "reference_id"),
    )

    @property
    def signed_quantity(self) -> Decimal:
        if self.transaction_type == MovementKind.OUT.value:
            return -self.quantity
        return self.quantity

    @property
    def created_by_username(self):
        return self.created_by.username if self.created_by else None

    def __repr__(self):
        return f"<InventoryTransaction id={self.id} {self.transaction_type} qty={self.quantity} product_id={self.product_id} {self.location_type}:{self.location_id} ref={self.reference_type}:{self.reference_id}>"


@event.listens_for(InventoryTransaction, "before_update")
def _refuse_ledger_update(mapper, connection, target):
    raise LedgerImmutableError(f"Inventory transaction {target.id} is immutable")


@event.listens_for(InventoryTransaction, "before_delete")
def _refuse_ledger_delete(mapper, connection, target):
    raise LedgerImmutableError(f"Inventory transaction {target.id} cannot be deleted")
