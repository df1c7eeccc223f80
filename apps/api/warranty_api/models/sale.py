"""
Sale and SaleItem models for point-of-sale records.
"""
import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship

from warranty_api.db.base import Base


class Sale(Base):
    """A completed sale. Its warranty window is fixed at checkout."""
    __tablename__ = "sales"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), ForeignKey("customers.id", ondelete="SET NULL"), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    warranty_expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")

    __table_args__ = (
        Index('idx_sales_customer_date', 'customer_id', 'date'),
    )


class SaleItem(Base):
    """A device sold as part of a sale."""
    __tablename__ = "sale_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sale_id = Column(String(36), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)
    stock_item_id = Column(String(36), ForeignKey("stock_items.id", ondelete="SET NULL"), nullable=True)

    sale = relationship("Sale", back_populates="items")
    stock_item = relationship("StockItem")
