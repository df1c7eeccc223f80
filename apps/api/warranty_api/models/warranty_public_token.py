"""
Public warranty token records, used to look up and revoke issued tokens.

A token is accepted only if a record with the SHA-256 of the full token
string exists, matches the token's id and signed expiry, and is not revoked.
Records are never deleted.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from warranty_api.db.base import Base


class WarrantyPublicToken(Base):
    __tablename__ = "warranty_public_tokens"

    # Token id, the first segment of the serialized token
    id = Column(String(64), primary_key=True)
    sale_id = Column(String(36), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False)

    # SHA-256 hex of the full token string (raw tokens are never stored)
    token_hash = Column(String(64), nullable=False, unique=True)

    # Must equal the expiry signed into the token, to the second
    expires_at = Column(DateTime(timezone=True), nullable=False)
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)

    created_by = Column(String(36), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    sale = relationship("Sale")

    __table_args__ = (
        Index('idx_warranty_public_tokens_sale', 'sale_id'),
    )
