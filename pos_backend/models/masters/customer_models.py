from decimal import Decimal

from sqlalchemy import Column, Integer, String, Text, Boolean, Numeric, DateTime, Index
from pos_backend.core.db import Base
from pos_backend.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Customer(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    customer_code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True, unique=True, index=True)
    phone = Column(String(20), nullable=True, index=True)
    address = Column(Text, nullable=True)

    is_member = Column(Boolean, nullable=False, default=False)
    loyalty_points = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(14, 2), nullable=False, default=Decimal("0.00"))
    last_visit = Column(DateTime(timezone=True), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_customer_active", "is_active"),)

    def __repr__(self):
        return f"<Customer id={self.id} code={self.customer_code} name={self.name} active={self.is_active}>"
