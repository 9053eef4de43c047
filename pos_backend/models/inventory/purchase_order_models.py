from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.constants.inventory import PurchaseOrderStatus
from pos_backend.models.base.mixins import TimestampMixin, AuditMixin, utcnow


class PurchaseOrder(Base, TimestampMixin, AuditMixin):
    __tablename__ = "purchase_orders"

    id = Column(Integer, primary_key=True)
    purchase_number = Column(String(50), nullable=False, unique=True, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)
    supplier_name = Column(String(255), nullable=False)
    supplier_contact = Column(String(255), nullable=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default=PurchaseOrderStatus.DRAFT.value, index=True)
    order_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    expected_date = Column(DateTime(timezone=True), nullable=True)
    received_date = Column(DateTime(timezone=True), nullable=True)
    total_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    notes = Column(Text, nullable=True)

    items = relationship(
        "PurchaseOrderItem",
        back_populates="purchase_order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PurchaseOrderItem.id",
    )

    __table_args__ = (
        Index("ix_purchase_order_warehouse_status", "warehouse_id", "status"),
        CheckConstraint("total_amount >= 0", name="ck_purchase_order_total_non_negative"),
    )

    def __repr__(self):
        return f"<PurchaseOrder id={self.id} number={self.purchase_number} status={self.status}>"


class PurchaseOrderItem(Base):
    __tablename__ = "purchase_order_items"

    id = Column(Integer, primary_key=True)
    purchase_order_id = Column(Integer, ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True)
    quantity_ordered = Column(Numeric(14, 3), nullable=False)
    quantity_received = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    unit_cost = Column(Numeric(12, 2), nullable=False)
    total_cost = Column(Numeric(14, 2), nullable=False)

    purchase_order = relationship("PurchaseOrder", back_populates="items", lazy="raise")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity_ordered > 0", name="ck_purchase_order_item_qty_positive"),
        CheckConstraint(
            "quantity_received >= 0 AND quantity_received <= quantity_ordered",
            name="ck_purchase_order_item_received_range",
        ),
        CheckConstraint("unit_cost >= 0", name="ck_purchase_order_item_cost_non_negative"),
    )

    @property
    def outstanding(self) -> Decimal:
        return self.quantity_ordered - self.quantity_received

    def __repr__(self):
        return f"<PurchaseOrderItem id={self.id} product_id={self.product_id} ordered={self.quantity_ordered} received={self.quantity_received}>"
