"""
Internal app user profile. Only the role is read here, to decide who may
issue and revoke public warranty links.
"""
from sqlalchemy import Column, String, DateTime, func

from warranty_api.db.base import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    # Same id as the `sub` claim of the caller's session token
    id = Column(String(36), primary_key=True)
    name = Column(String, nullable=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
