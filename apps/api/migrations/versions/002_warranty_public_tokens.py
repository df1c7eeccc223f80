"""Add warranty_public_tokens table for revocable public warranty links

Revision ID: 002_warranty_public_tokens
Revises: 001_store_schema
Create Date: 2026-10-19

Tokens are looked up by the SHA-256 of the full token string, so token_hash
is unique. Rows are never deleted; revoked_at marks a token dead.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '002_warranty_public_tokens'
down_revision: Union[str, None] = '001_store_schema'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'warranty_public_tokens',
        sa.Column('id', sa.String(64), primary_key=True),
        sa.Column('sale_id', sa.String(36), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('token_hash', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_accessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_by', sa.String(36), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint('token_hash', name='uq_warranty_public_tokens_token_hash'),
    )
    op.create_index('idx_warranty_public_tokens_sale', 'warranty_public_tokens', ['sale_id'])


def downgrade() -> None:
    op.drop_index('idx_warranty_public_tokens_sale', table_name='warranty_public_tokens')
    op.drop_table('warranty_public_tokens')
