from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.constants.sales import SaleStatus, PaymentStatus, PaymentMethod
from pos_backend.models.base.mixins import TimestampMixin, utcnow


class Sale(Base, TimestampMixin):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    sale_number = Column(String(50), nullable=False, unique=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="RESTRICT"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True, index=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="SET NULL"), nullable=True)
    cashier_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False, index=True)

    subtotal = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    tax_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    discount_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    total_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    paid_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    change_amount = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    loyalty_points_earned = Column(Integer, nullable=False, default=0)
    loyalty_points_redeemed = Column(Integer, nullable=False, default=0)

    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PAID.value)
    sale_status = Column(String(20), nullable=False, default=SaleStatus.COMPLETED.value, index=True)
    payment_method = Column(String(20), nullable=False, default=PaymentMethod.CASH.value)
    notes = Column(Text, nullable=True)
    sale_date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    items = relationship(
        "SaleItem",
        back_populates="sale",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SaleItem.id",
    )
    payments = relationship(
        "SalePayment",
        back_populates="sale",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="SalePayment.id",
    )

    __table_args__ = (
        Index("ix_sale_store_date", "store_id", "sale_date"),
        CheckConstraint(
            "subtotal >= 0 AND total_amount >= 0 AND paid_amount >= 0 AND change_amount >= 0",
            name="ck_sale_amounts_non_negative",
        ),
    )

    def __repr__(self):
        return f"<Sale {self.sale_number} store_id={self.store_id} total={self.total_amount}>"


class SaleItem(Base):
    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="RESTRICT"), nullable=False, index=True)
    product_variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="RESTRICT"), nullable=True)
    quantity = Column(Numeric(14, 3), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    discount_amount = Column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))
    total_price = Column(Numeric(14, 2), nullable=False)

    sale = relationship("Sale", back_populates="items", lazy="raise")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_sale_item_qty_positive"),
        CheckConstraint("unit_price >= 0", name="ck_sale_item_price_non_negative"),
    )

    def __repr__(self):
        return f"<SaleItem id={self.id} product_id={self.product_id} qty={self.quantity} total={self.total_price}>"


class SalePayment(Base):
    __tablename__ = "sale_payments"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    reference_number = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default=PaymentStatus.PAID.value)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    sale = relationship("Sale", back_populates="payments", lazy="raise")

    __table_args__ = (CheckConstraint("amount > 0", name="ck_sale_payment_amount_positive"),)

    def __repr__(self):
        return f"<SalePayment id={self.id} method={self.payment_method} amount={self.amount}>"
