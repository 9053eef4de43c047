from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from pos_backend.core.db import Base
from pos_backend.models.base.mixins import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    full_name = Column(String(255), nullable=True)
    role = Column(String(50), nullable=False, default="cashier")
    is_active = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, nullable=False, default=0)
    last_login = Column(DateTime(timezone=True))

    # Cashiers are pinned to one store; admins and managers leave this empty
    store_id = Column(Integer, ForeignKey("stores.id", ondelete="SET NULL", use_alter=True), nullable=True, index=True)

    store = relationship("Store", foreign_keys=[store_id], lazy="selectin")

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role} store_id={self.store_id}>"
