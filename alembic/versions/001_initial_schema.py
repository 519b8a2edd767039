# alembic/versions/001_initial_schema.py
"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime, nullable=False),
        sa.Column('updated_at', sa.DateTime, nullable=False),
    ]


def upgrade() -> None:
    # Create vendors table
    op.create_table(
        'vendors',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('shop_name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(32), nullable=False),
        sa.Column('email', sa.String(255), unique=True, nullable=False, index=True),
        sa.Column('password_hash', sa.String(255), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'ACTIVE'"), nullable=False),
        *_timestamps(),
    )

    # Create plans table
    op.create_table(
        'plans',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('name', sa.String(20), unique=True, nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('duration_days', sa.Integer, nullable=False),
        sa.Column('order_limit', sa.Integer),
        sa.Column('features', sa.JSON),
        *_timestamps(),
    )

    # Create subscriptions table
    op.create_table(
        'subscriptions',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False, index=True),
        sa.Column('plan_id', sa.String(36), sa.ForeignKey('plans.id'), nullable=False),
        sa.Column('start_date', sa.DateTime, nullable=False),
        sa.Column('end_date', sa.DateTime, nullable=False, index=True),
        sa.Column('status', sa.String(20), server_default=sa.text("'TRIAL'"), nullable=False, index=True),
        sa.Column('payment_reference', sa.String(255)),
        *_timestamps(),
    )

    # Create catalog tables
    op.create_table(
        'categories',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(),
    )

    op.create_table(
        'menu_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False, index=True),
        sa.Column('category_id', sa.String(36), sa.ForeignKey('categories.id'), nullable=False, index=True),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('image_url', sa.String(500)),
        sa.Column('is_available', sa.Boolean, server_default=sa.true(), nullable=False),
        *_timestamps(),
    )

    # Create token trackers table
    op.create_table(
        'token_trackers',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False),
        sa.Column('date', sa.String(10), nullable=False),
        sa.Column('last_token', sa.Integer, server_default=sa.text("0"), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('vendor_id', 'date', name='uq_token_trackers_vendor_date'),
    )

    # Create orders tables
    op.create_table(
        'orders',
        sa.Column('id', sa.String(36), primary_key=True, index=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False, index=True),
        sa.Column('token_number', sa.Integer, nullable=False),
        sa.Column('customer_phone', sa.String(32)),
        sa.Column('subtotal', sa.Numeric(10, 2), nullable=False),
        sa.Column('tax_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_status', sa.String(20), server_default=sa.text("'INITIATED'"), nullable=False, index=True),
        sa.Column('order_status', sa.String(20), server_default=sa.text("'Pending'"), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "payment_status IN ('INITIATED', 'SUCCESS', 'FAILED')",
            name='orders_payment_status_check',
        ),
        sa.CheckConstraint(
            "order_status IN ('Pending', 'Preparing', 'Ready', 'Completed')",
            name='orders_order_status_check',
        ),
    )
    op.create_index('ix_orders_vendor_created', 'orders', ['vendor_id', 'created_at'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id'), nullable=False, index=True),
        sa.Column('position', sa.Integer, nullable=False),
        sa.Column('menu_item_id', sa.String(36), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('quantity', sa.Integer, nullable=False),
        sa.Column('unit_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_price', sa.Numeric(10, 2), nullable=False),
        *_timestamps(),
    )

    # Create payments table
    op.create_table(
        'payments',
        sa.Column('id', sa.String(36), primary_key=True),
        sa.Column('vendor_id', sa.String(36), sa.ForeignKey('vendors.id'), nullable=False, index=True),
        sa.Column('order_id', sa.String(36), sa.ForeignKey('orders.id'), unique=True, nullable=False),
        sa.Column('gateway_order_id', sa.String(64), unique=True, nullable=False, index=True),
        sa.Column('gateway_payment_id', sa.String(64)),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('currency', sa.String(3), nullable=False),
        sa.Column('status', sa.String(20), server_default=sa.text("'CREATED'"), nullable=False, index=True),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table('payments')
    op.drop_table('order_items')
    op.drop_index('ix_orders_vendor_created', table_name='orders')
    op.drop_table('orders')
    op.drop_table('token_trackers')
    op.drop_table('menu_items')
    op.drop_table('categories')
    op.drop_table('subscriptions')
    op.drop_table('plans')
    op.drop_table('vendors')
