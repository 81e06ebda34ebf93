"""create store tables

Revision ID: 0001_create_store_tables
Revises:
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = '0001_create_store_tables'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=20), nullable=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False, server_default='customer'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'identifier_counters',
        sa.Column('prefix', sa.String(length=10), primary_key=True),
        sa.Column('value', sa.Integer(), nullable=False, server_default='0'),
    )

    op.create_table(
        'categories',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('name', sa.String(length=100), nullable=False, unique=True),
    )

    op.create_table(
        'products',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category_id', sa.String(length=20), sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('detail', sa.Text(), nullable=True),
        sa.Column('instock_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('sold_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('price', sa.Numeric(10, 2), nullable=False, server_default='0'),
        sa.Column('rating', sa.Numeric(3, 2), nullable=True),
        sa.Column('photo_path', sa.String(length=255), nullable=True),
        sa.CheckConstraint('price >= 0', name='ck_products_price_nonneg'),
        sa.CheckConstraint('instock_quantity >= 0', name='ck_products_stock_nonneg'),
    )
    op.create_index('ix_products_category_name', 'products', ['category_id', 'name'])

    op.create_table(
        'product_packages',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('product_id', sa.String(length=20), sa.ForeignKey('products.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price', sa.Numeric(10, 2), nullable=False),
        sa.Column('bonus_description', sa.String(length=255), nullable=True),
        sa.CheckConstraint('price >= 0', name='ck_packages_price_nonneg'),
    )
    op.create_index('ix_packages_product_price', 'product_packages', ['product_id', 'price'])

    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('game_uid', sa.String(length=100), nullable=True),
        sa.Column('game_server', sa.String(length=100), nullable=True),
        sa.Column('purchase_date', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='In Progress'),
    )
    op.create_index('ix_orders_user_purchase', 'orders', ['user_id', 'purchase_date'])

    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.String(length=20), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('product_id', sa.String(length=20), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('package_id', sa.String(length=20), sa.ForeignKey('product_packages.id'), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('price_per_item', sa.Numeric(10, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_orderitem_quantity_pos'),
        sa.CheckConstraint('price_per_item >= 0', name='ck_orderitem_price_nonneg'),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('order_id', sa.String(length=20), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('method', sa.String(length=30), nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='In Progress'),
        sa.Column('payment_date', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('customer_bank_account', sa.String(length=50), nullable=True),
        sa.Column('customer_true_wallet_number', sa.String(length=20), nullable=True),
        sa.Column('customer_promptpay_number', sa.String(length=20), nullable=True),
        sa.Column('customer_card_number', sa.String(length=4), nullable=True),
        sa.Column('transaction_id', sa.String(length=100), nullable=True),
        sa.Column('proof_path', sa.String(length=255), nullable=True),
        sa.UniqueConstraint('order_id', name='uq_payments_order'),
        sa.CheckConstraint('amount >= 0', name='ck_payments_amount_nonneg'),
    )


def downgrade():
    op.drop_table('payments')
    op.drop_table('order_items')
    op.drop_index('ix_orders_user_purchase', table_name='orders')
    op.drop_table('orders')
    op.drop_index('ix_packages_product_price', table_name='product_packages')
    op.drop_table('product_packages')
    op.drop_index('ix_products_category_name', table_name='products')
    op.drop_table('products')
    op.drop_table('categories')
    op.drop_table('identifier_counters')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')
