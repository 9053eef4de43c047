from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Product(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    barcode = Column(String(100), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    description = Column(Text, nullable=True)
    category = Column(String(100), nullable=True, index=True)
    brand = Column(String(100), nullable=True)
    unit = Column(String(20), nullable=False, default="pcs")
    cost_price = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    selling_price = Column(Numeric(12, 2), nullable=False)
    min_stock = Column(Numeric(14, 3), nullable=False, default=Decimal("0"))
    max_stock = Column(Numeric(14, 3), nullable=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id", ondelete="SET NULL"), nullable=True, index=True)
    is_trackable = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)

    supplier = relationship("Supplier", back_populates="products", lazy="selectin")
    variants = relationship(
        "ProductVariant",
        back_populates="product",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ProductVariant.id",
    )

    __table_args__ = (
        Index("ix_product_name_category", "name", "category"),
        CheckConstraint("selling_price >= 0 AND cost_price >= 0", name="ck_product_prices_non_negative"),
    )

    def __repr__(self):
        return f"<Product id={self.id} sku={self.sku} name={self.name}>"


class ProductVariant(Base, TimestampMixin):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)
    sku = Column(String(100), nullable=False, unique=True, index=True)
    barcode = Column(String(100), nullable=True, unique=True, index=True)
    name = Column(String(255), nullable=False)
    size = Column(String(50), nullable=True)
    color = Column(String(50), nullable=True)
    cost_price = Column(Numeric(12, 2), nullable=True)
    selling_price = Column(Numeric(12, 2), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    product = relationship("Product", back_populates="variants", lazy="raise")

    def __repr__(self):
        return f"<ProductVariant id={self.id} product_id={self.product_id} sku={self.sku}>"
