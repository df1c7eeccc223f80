"""
Customer model. Customers are maintained by the CRM screens; the warranty
services only read them.
"""
import uuid
from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.orm import relationship

from warranty_api.db.base import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    # National taxpayer id as typed by the clerk, punctuation included
    cpf = Column(String(20), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    sales = relationship("Sale", back_populates="customer")
