from decimal import Decimal

from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, Index, CheckConstraint, func
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.constants.inventory import LocationKind
from pos_backend.models.base.mixins import utcnow


class BalanceMixin:
    """Columns shared by the warehouse and store balance tables.

    Key columns live on the concrete classes: their unique index needs the
    class's own column objects.
    """

    quantity = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    reserved_quantity = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    min_stock = Column(Numeric(14, 3), nullable=True)
    max_stock = Column(Numeric(14, 3), nullable=True)
    shelf_location = Column(String(100), nullable=True)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    location_kind: LocationKind
    location_column: str

    @property
    def location_id(self) -> int:
        return getattr(self, self.location_column)


class WarehouseInventory(Base, BalanceMixin):
    __tablename__ = "warehouse_inventories"

    location_kind = LocationKind.WAREHOUSE
    location_column = "warehouse_id"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True, index=True)
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="RESTRICT"), nullable=False, index=True)

    zone = Column(String(50), nullable=True)
    aisle = Column(String(50), nullable=True)
    level = Column(String(50), nullable=True)
    bin_location = Column(String(100), nullable=True)

    product = relationship("Product", lazy="selectin")
    variant = relationship("ProductVariant", lazy="selectin")
    warehouse = relationship("Warehouse", lazy="selectin")

    __table_args__ = (
        Index(
            "uq_warehouse_inventory_key",
            product_id,
            func.coalesce(product_variant_id, 0),
            warehouse_id,
            unique=True,
        ),
        CheckConstraint("quantity >= 0", name="ck_warehouse_inventory_quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="ck_warehouse_inventory_reserved_non_negative"),
    )

    def __repr__(self):
        return f"<WarehouseInventory id={self.id} product_id={self.product_id} variant_id={self.product_variant_id} warehouse_id={self.warehouse_id} qty={self.quantity}>"


class StoreInventory(Base, BalanceMixin):
    __tablename__ = "store_inventories"

    location_kind = LocationKind.STORE
    location_column = "store_id"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=False, index=True)

    section = Column(String(100), nullable=True)
    display_area = Column(String(100), nullable=True)

    product = relationship("Product", lazy="selectin")
    variant = relationship("ProductVariant", lazy="selectin")
    store = relationship("Store", lazy="selectin")

    __table_args__ = (
        Index(
            "uq_store_inventory_key",
            product_id,
            func.coalesce(product_variant_id, 0),
            store_id,
            unique=True,
        ),
        CheckConstraint("quantity >= 0", name="ck_store_inventory_quantity_non_negative"),
        CheckConstraint("reserved_quantity >= 0", name="ck_store_inventory_reserved_non_negative"),
    )

    def __repr__(self):
        return f"<StoreInventory id={self.id} product_id={self.product_id} variant_id={self.product_variant_id} store_id={self.store_id} qty={self.quantity}>"
