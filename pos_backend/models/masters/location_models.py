from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Warehouse(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "warehouses"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("ix_warehouse_active", "is_active"),)

    def __repr__(self):
        return f"<Warehouse id={self.id} code={self.code} active={self.is_active}>"


class Store(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "stores"

    id = Column(Integer, primary_key=True)
    code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(100), nullable=False)
    address = Column(Text, nullable=True)
    phone = Column(String(20), nullable=True)
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    # Stores are replenished from this warehouse by default
    warehouse_id = Column(Integer, ForeignKey("warehouses.id", ondelete="SET NULL"), nullable=True, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    warehouse = relationship("Warehouse", lazy="raise")

    __table_args__ = (Index("ix_store_active", "is_active"),)

    def __repr__(self):
        return f"<Store id={self.id} code={self.code} active={self.is_active}>"
