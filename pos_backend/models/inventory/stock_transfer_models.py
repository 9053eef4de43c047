from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.constants.inventory import LocationKind, TransferStatus
from pos_backend.models.base.mixins import TimestampMixin


class StockTransfer(Base, TimestampMixin):
    """Physical stock movement between two locations. NOT a sale or a reservation."""

    __tablename__ = "stock_transfers"

    id = Column(Integer, primary_key=True)
    transfer_number = Column(String(50), nullable=False, unique=True, index=True)

    from_warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=True, index=True)
    from_store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=True, index=True)
    to_warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=True, index=True)
    to_store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=True, index=True)

    status = Column(String(20), nullable=False, default=TransferStatus.PENDING.value, index=True)
    requested_by_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)
    approved_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    shipped_at = Column(DateTime(timezone=True), nullable=True)
    received_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)

    items = relationship(
        "StockTransferItem",
        back_populates="transfer",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="StockTransferItem.id",
    )

    __table_args__ = (
        CheckConstraint(
            "(from_warehouse_id IS NULL) <> (from_store_id IS NULL)",
            name="ck_stock_transfer_single_source",
        ),
        CheckConstraint(
            "(to_warehouse_id IS NULL) <> (to_store_id IS NULL)",
            name="ck_stock_transfer_single_destination",
        ),
        Index("ix_stock_transfer_status_created", "status", "created_at"),
    )

    @property
    def source(self) -> tuple[LocationKind, int]:
        if self.from_warehouse_id is not None:
            return LocationKind.WAREHOUSE, self.from_warehouse_id
        return LocationKind.STORE, self.from_store_id

    @property
    def destination(self) -> tuple[LocationKind, int]:
        if self.to_warehouse_id is not None:
            return LocationKind.WAREHOUSE, self.to_warehouse_id
        return LocationKind.STORE, self.to_store_id

    def __repr__(self):
        return f"<StockTransfer id={self.id} number={self.transfer_number} status={self.status}>"


class StockTransferItem(Base):
    __tablename__ = "stock_transfer_items"

    id = Column(Integer, primary_key=True)
    transfer_id = Column(Integer, ForeignKey("stock_transfers.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True)
    quantity_requested = Column(Numeric(14, 3), nullable=False)
    quantity_shipped = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    quantity_received = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    notes = Column(Text, nullable=True)

    transfer = relationship("StockTransfer", back_populates="items", lazy="raise")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity_requested > 0", name="ck_stock_transfer_item_qty_positive"),
    )

    def __repr__(self):
        return f"<StockTransferItem id={self.id} product_id={self.product_id} qty={self.quantity_requested}>"
