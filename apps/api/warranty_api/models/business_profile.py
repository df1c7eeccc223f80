import uuid
from sqlalchemy import Column, String

from warranty_api.db.base import Base


class BusinessProfile(Base):
    __tablename__ = "business_profile"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=True)
