"""
Stock item model (a single physical device in inventory).
"""
import uuid
from sqlalchemy import Column, String, DateTime, func

from warranty_api.db.base import Base


class StockItem(Base):
    __tablename__ = "stock_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    model = Column(String, nullable=True)
    capacity = Column(String(20), nullable=True)
    color = Column(String(50), nullable=True)
    condition = Column(String(50), nullable=True)
    imei = Column(String(32), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
