"""initial stockroom schema

Revision ID: b7c1d2e3f4a5
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates the complete schema from scratch:
- products: catalogue with on-hand quantity and reorder threshold
- stock_alerts: low / out-of-stock audit trail (resolved, never deleted)
- transactions: one row per checkout with embedded line summaries
- sales: one immutable row per product per checkout
- daily_analytics: per-date rollup snapshots, upserted by date
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c1d2e3f4a5'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # products
    # ============================================================================
    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku', sa.String(64), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('price_cents', sa.Integer(), nullable=False),
        sa.Column('cost_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('min_stock_level', sa.Integer(), nullable=False),
        sa.Column('category', sa.String(120), nullable=False),
        sa.Column('supplier', sa.String(255), nullable=False),
        sa.Column('expiry_date', sa.String(10), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.UniqueConstraint('sku', name='uq_products_sku'),
        sa.CheckConstraint('quantity >= 0', name='ck_products_quantity_non_negative'),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_products_category', 'products', ['category'])
    op.create_index('ix_products_category_active', 'products', ['category', 'is_active'])

    # ============================================================================
    # stock_alerts
    # ============================================================================
    op.create_table(
        'stock_alerts',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('current_stock', sa.Integer(), nullable=False),
        sa.Column('min_stock_level', sa.Integer(), nullable=False),
        sa.Column('alert_type', sa.String(32), nullable=False),
        sa.Column('is_resolved', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('resolved_at', sa.DateTime(), nullable=True),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_stock_alerts_product_id', 'stock_alerts', ['product_id'])
    op.create_index('ix_stock_alerts_is_resolved', 'stock_alerts', ['is_resolved'])
    op.create_index('ix_stock_alerts_product_resolved', 'stock_alerts', ['product_id', 'is_resolved'])

    # ============================================================================
    # transactions
    # ============================================================================
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('items', sa.JSON(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('total_profit_cents', sa.Integer(), nullable=False),
        sa.Column('payment_method', sa.String(32), nullable=False),
        sa.Column('customer_id', sa.String(64), nullable=True),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_transactions_occurred_at', 'transactions', ['occurred_at'])

    # ============================================================================
    # sales (one row per sale line)
    # ============================================================================
    op.create_table(
        'sales',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('transaction_id', sa.Integer(), sa.ForeignKey('transactions.id'), nullable=False),
        sa.Column('product_id', sa.Integer(), sa.ForeignKey('products.id'), nullable=False),
        sa.Column('product_name', sa.String(255), nullable=False),
        sa.Column('category', sa.String(120), nullable=False),
        sa.Column('unit_price_cents', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('total_amount_cents', sa.Integer(), nullable=False),
        sa.Column('profit_cents', sa.Integer(), nullable=False),
        sa.Column('customer_id', sa.String(64), nullable=True),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sqlite_autoincrement=True,
    )
    op.create_index('ix_sales_transaction_id', 'sales', ['transaction_id'])
    op.create_index('ix_sales_product_id', 'sales', ['product_id'])
    op.create_index('ix_sales_category', 'sales', ['category'])
    op.create_index('ix_sales_occurred_at', 'sales', ['occurred_at'])
    op.create_index('ix_sales_product_occurred', 'sales', ['product_id', 'occurred_at'])

    # ============================================================================
    # daily_analytics
    # ============================================================================
    op.create_table(
        'daily_analytics',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('date', sa.String(10), nullable=False),
        sa.Column('total_sales_cents', sa.Integer(), nullable=False),
        sa.Column('total_profit_cents', sa.Integer(), nullable=False),
        sa.Column('total_transactions', sa.Integer(), nullable=False),
        sa.Column('top_selling_products', sa.JSON(), nullable=False),
        sa.Column('category_performance', sa.JSON(), nullable=False),
        sa.UniqueConstraint('date', name='uq_daily_analytics_date'),
        sqlite_autoincrement=True,
    )


def downgrade():
    op.drop_table('daily_analytics')
    op.drop_index('ix_sales_product_occurred', table_name='sales')
    op.drop_index('ix_sales_occurred_at', table_name='sales')
    op.drop_index('ix_sales_category', table_name='sales')
    op.drop_index('ix_sales_product_id', table_name='sales')
    op.drop_index('ix_sales_transaction_id', table_name='sales')
    op.drop_table('sales')
    op.drop_index('ix_transactions_occurred_at', table_name='transactions')
    op.drop_table('transactions')
    op.drop_index('ix_stock_alerts_product_resolved', table_name='stock_alerts')
    op.drop_index('ix_stock_alerts_is_resolved', table_name='stock_alerts')
    op.drop_index('ix_stock_alerts_product_id', table_name='stock_alerts')
    op.drop_table('stock_alerts')
    op.drop_index('ix_products_category_active', table_name='products')
    op.drop_index('ix_products_category', table_name='products')
    op.drop_table('products')
