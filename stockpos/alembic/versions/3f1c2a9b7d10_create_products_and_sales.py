"""Create products and sales tables

Revision ID: 3f1c2a9b7d10
Revises:
Create Date: 2025-09-02 10:12:31.402118

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '3f1c2a9b7d10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'products',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('description', sa.String(), nullable=True),
        sa.Column('cost', sa.Float(), nullable=True),
        sa.Column('price', sa.Float(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=True),
        sa.Column('barcode', sa.String(), nullable=True),
        sa.Column('image', sa.String(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_products_barcode'), 'products', ['barcode'], unique=False)

    op.create_table(
        'sales',
        sa.Column('id', sa.String(), nullable=False),
        sa.Column('productId', sa.String(), nullable=True),
        sa.Column('quantity', sa.Float(), nullable=True),
        sa.Column('timestamp', sa.BigInteger(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sales_productId'), 'sales', ['productId'], unique=False)
    op.create_index(op.f('ix_sales_timestamp'), 'sales', ['timestamp'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_sales_timestamp'), table_name='sales')
    op.drop_index(op.f('ix_sales_productId'), table_name='sales')
    op.drop_table('sales')
    op.drop_index(op.f('ix_products_barcode'), table_name='products')
    op.drop_table('products')
