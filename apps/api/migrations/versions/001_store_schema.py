"""Store tables read by the warranty services

Revision ID: 001_store_schema
Revises:
Create Date: 2026-10-19

Minimal customers, stock_items, sales, sale_items, business_profile and
user_profiles tables. They are owned by the store back office; only the
columns the warranty services read are created here.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_store_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'customers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('cpf', sa.String(20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_customers_cpf', 'customers', ['cpf'])

    op.create_table(
        'stock_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('model', sa.String(), nullable=True),
        sa.Column('capacity', sa.String(20), nullable=True),
        sa.Column('color', sa.String(50), nullable=True),
        sa.Column('condition', sa.String(50), nullable=True),
        sa.Column('imei', sa.String(32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )

    op.create_table(
        'sales',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('customer_id', sa.String(36), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True),
        sa.Column('date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('warranty_expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('idx_sales_customer_date', 'sales', ['customer_id', 'date'])

    op.create_table(
        'sale_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('sale_id', sa.String(36), sa.ForeignKey('sales.id', ondelete='CASCADE'), nullable=False),
        sa.Column('stock_item_id', sa.String(36), sa.ForeignKey('stock_items.id', ondelete='SET NULL'), nullable=True),
    )

    op.create_table(
        'business_profile',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
    )

    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(), nullable=True),
        sa.Column('role', sa.String(20), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
    )


def downgrade() -> None:
    op.drop_table('user_profiles')
    op.drop_table('business_profile')
    op.drop_table('sale_items')
    op.drop_table('sales')
    op.drop_table('stock_items')
    op.drop_table('customers')
