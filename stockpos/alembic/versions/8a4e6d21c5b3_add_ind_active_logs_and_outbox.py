"""Add ind_active to products, logs and sync_outbox tables

Revision ID: 8a4e6d21c5b3
Revises: 3f1c2a9b7d10
Create Date: 2025-10-21 18:40:05.771930

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# Revision identifiers used by Alembic
revision: str = '8a4e6d21c5b3'
down_revision: Union[str, Sequence[str], None] = '3f1c2a9b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # Nullable: existing rows are backfilled to True when the store loads
    with op.batch_alter_table('products') as batch_op:
        batch_op.add_column(sa.Column('ind_active', sa.Boolean(), nullable=True))

    op.create_table(
        'logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ts', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=True),
        sa.Column('action', sa.String(length=50), nullable=True),
        sa.Column('resource', sa.String(length=50), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=True),
        sa.Column('message', sa.Text(), nullable=True),
        sa.Column('meta', sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_logs_id'), 'logs', ['id'], unique=False)
    op.create_index(op.f('ix_logs_ts'), 'logs', ['ts'], unique=False)
    op.create_index(op.f('ix_logs_action'), 'logs', ['action'], unique=False)
    op.create_index(op.f('ix_logs_resource'), 'logs', ['resource'], unique=False)
    op.create_index(op.f('ix_logs_status'), 'logs', ['status'], unique=False)

    op.create_table(
        'sync_outbox',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('idempotency_key', sa.String(length=36), nullable=False),
        sa.Column('body', sa.LargeBinary(), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('attempts', sa.Integer(), nullable=False),
        sa.Column('next_attempt_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('last_error', sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_sync_outbox_id'), 'sync_outbox', ['id'], unique=False)
    op.create_index(op.f('ix_sync_outbox_idempotency_key'), 'sync_outbox', ['idempotency_key'], unique=True)
    op.create_index(op.f('ix_sync_outbox_next_attempt_at'), 'sync_outbox', ['next_attempt_at'], unique=False)
    op.create_index(op.f('ix_sync_outbox_delivered_at'), 'sync_outbox', ['delivered_at'], unique=False)


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f('ix_sync_outbox_delivered_at'), table_name='sync_outbox')
    op.drop_index(op.f('ix_sync_outbox_next_attempt_at'), table_name='sync_outbox')
    op.drop_index(op.f('ix_sync_outbox_idempotency_key'), table_name='sync_outbox')
    op.drop_index(op.f('ix_sync_outbox_id'), table_name='sync_outbox')
    op.drop_table('sync_outbox')

    op.drop_index(op.f('ix_logs_status'), table_name='logs')
    op.drop_index(op.f('ix_logs_resource'), table_name='logs')
    op.drop_index(op.f('ix_logs_action'), table_name='logs')
    op.drop_index(op.f('ix_logs_ts'), table_name='logs')
    op.drop_index(op.f('ix_logs_id'), table_name='logs')
    op.drop_table('logs')

    with op.batch_alter_table('products') as batch_op:
        batch_op.drop_column('ind_active')
