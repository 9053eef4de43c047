from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Numeric,
    Date,
    DateTime,
    Boolean,
    ForeignKey,
    Index,
    CheckConstraint,
)
from pos_backend.core.db import Base
from pos_backend.constants.sales import DiscountApplicableTo
from pos_backend.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin, utcnow


class Discount(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "discounts"

    id = Column(Integer, primary_key=True)
    name = Column(String(100), nullable=False)
    code = Column(String(50), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)
    discount_type = Column(String(20), nullable=False)  # percentage | fixed
    discount_value = Column(Numeric(12, 2), nullable=False)
    min_purchase = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    max_discount = Column(Numeric(14, 2), nullable=True)  # NULL = no cap

    applicable_to = Column(String(20), nullable=False, default=DiscountApplicableTo.ALL.value)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="CASCADE"), nullable=True)
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="CASCADE"), nullable=True)  # NULL = every store

    usage_limit = Column(Integer, nullable=True)
    usage_count = Column(Integer, nullable=False, default=0)
    usage_per_customer = Column(Integer, nullable=True)

    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_discount_type"),
        CheckConstraint(
            "applicable_to IN ('all', 'member', 'specific_customer')",
            name="ck_discount_applicable_to",
        ),
        CheckConstraint("discount_value > 0", name="ck_discount_value_positive"),
        CheckConstraint("usage_count >= 0", name="ck_discount_usage_count_non_negative"),
        CheckConstraint("usage_limit IS NULL OR usage_count <= usage_limit", name="ck_discount_usage_limit"),
        CheckConstraint(
            "start_date IS NULL OR end_date IS NULL OR end_date >= start_date",
            name="ck_discount_date_range",
        ),
        Index("ix_discount_active", "is_active"),
    )

    def __repr__(self):
        return f"<Discount id={self.id} code={self.code} type={self.discount_type}>"


class DiscountUsage(Base):
    __tablename__ = "discount_usages"

    id = Column(Integer, primary_key=True)
    discount_id = Column(Integer, ForeignKey("discounts.id", ondelete="CASCADE"), nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    amount = Column(Numeric(14, 2), nullable=False)
    used_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (Index("ix_discount_usage_customer", "discount_id", "customer_id"),)

    def __repr__(self):
        return f"<DiscountUsage discount_id={self.discount_id} sale_id={self.sale_id} amount={self.amount}>"
