"""Initial tillbook schema: inventory, layaway holds, audit log, time punches

Revision ID: 20261019_initial
Revises:
Create Date: 2026-10-19

This migration adds:
1. inventory_items (one row per tracked category/brand/item)
2. layaway_holds (open holds, rewritten as a whole list)
3. audit_log_entries (append-only, partitioned by log_date)
4. time_punches (raw IN/OUT events for payroll)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261019_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. INVENTORY
    # ==========================================================================
    op.create_table('inventory_items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('item_code', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('last_change', sa.String(length=255), nullable=True),
        sa.Column('last_change_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('category', 'brand', 'item', name='uq_inventory_items_key'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('inventory_items', schema=None) as batch_op:
        batch_op.create_index('ix_inventory_items_item_code', ['item_code'], unique=False)

    # ==========================================================================
    # 2. LAYAWAY HOLDS
    # ==========================================================================
    op.create_table('layaway_holds',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('layaway_id', sa.String(length=64), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False),
        sa.Column('item_code', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('original_price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('amount_paid', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('remaining_balance', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('is_inventory_tracked', sa.Boolean(), nullable=False),
        sa.Column('customer_name', sa.String(length=255), nullable=True),
        sa.Column('customer_phone', sa.String(length=32), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('layaway_id', name='uq_layaway_holds_layaway_id'),
        sqlite_autoincrement=True
    )

    # ==========================================================================
    # 3. AUDIT LOG
    # ==========================================================================
    op.create_table('audit_log_entries',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('log_date', sa.Date(), nullable=False),
        sa.Column('timestamp', sa.DateTime(timezone=True), nullable=False),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('item_code', sa.String(length=64), nullable=False),
        sa.Column('category', sa.String(length=128), nullable=False),
        sa.Column('brand', sa.String(length=128), nullable=False),
        sa.Column('item', sa.String(length=255), nullable=False),
        sa.Column('quantity_change', sa.String(length=32), nullable=False),
        sa.Column('new_quantity', sa.String(length=32), nullable=False),
        sa.Column('price_sold', sa.String(length=32), nullable=False),
        sa.Column('discount_applied', sa.String(length=64), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('audit_log_entries', schema=None) as batch_op:
        batch_op.create_index('ix_audit_log_entries_day', ['log_date', 'id'], unique=False)
        batch_op.create_index(batch_op.f('ix_audit_log_entries_action'), ['action'], unique=False)

    # ==========================================================================
    # 4. TIME PUNCHES
    # ==========================================================================
    op.create_table('time_punches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('worker', sa.String(length=128), nullable=False),
        sa.Column('direction', sa.String(length=8), nullable=False),
        sa.Column('punched_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('time_punches', schema=None) as batch_op:
        batch_op.create_index('ix_time_punches_worker_at', ['worker', 'punched_at'], unique=False)
        batch_op.create_index(batch_op.f('ix_time_punches_punched_at'), ['punched_at'], unique=False)


def downgrade():
    with op.batch_alter_table('time_punches', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_time_punches_punched_at'))
        batch_op.drop_index('ix_time_punches_worker_at')
    op.drop_table('time_punches')

    with op.batch_alter_table('audit_log_entries', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_audit_log_entries_action'))
        batch_op.drop_index('ix_audit_log_entries_day')
    op.drop_table('audit_log_entries')

    op.drop_table('layaway_holds')

    with op.batch_alter_table('inventory_items', schema=None) as batch_op:
        batch_op.drop_index('ix_inventory_items_item_code')
    op.drop_table('inventory_items')
