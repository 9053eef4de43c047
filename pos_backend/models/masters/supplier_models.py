from sqlalchemy import Column, Integer, String, Text, Boolean
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.models.base.mixins import TimestampMixin, SoftDeleteMixin, AuditMixin


class Supplier(Base, TimestampMixin, SoftDeleteMixin, AuditMixin):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    supplier_code = Column(String(50), nullable=False, unique=True, index=True)
    name = Column(String(255), nullable=False, unique=True, index=True)
    contact_person = Column(String(255), nullable=True)
    phone = Column(String(20), nullable=True, index=True)
    email = Column(String(255), nullable=True, index=True)
    address = Column(Text, nullable=True)
    tax_number = Column(String(50), nullable=True)
    payment_terms = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    products = relationship("Product", back_populates="supplier", lazy="raise")

    def __repr__(self):
        return f"<Supplier id={self.id} code={self.supplier_code} name={self.name}>"
