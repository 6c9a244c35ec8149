"""initial_ledger_schema

Revision ID: 4c1e2a7b9d10
Revises:
Create Date: 2026-10-19 10:12:44.118203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '4c1e2a7b9d10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

shift_status = postgresql.ENUM('OPEN', 'CLOSED', name='shift_status', create_type=False)
instrument_status = postgresql.ENUM(
    'PENDING', 'PARTIAL', 'PAID', name='instrument_status', create_type=False
)
reference_type = postgresql.ENUM('SALE', 'PURCHASE', name='reference_type', create_type=False)
instrument_kind = postgresql.ENUM(
    'RECEIVABLE', 'PAYABLE', name='instrument_kind', create_type=False
)
payment_method = postgresql.ENUM(
    'CASH', 'CARD', 'TRANSFER', 'OTHER', name='payment_method', create_type=False
)
purchase_order_status = postgresql.ENUM(
    'PENDING', 'COMPLETED', name='purchase_order_status', create_type=False
)
purchase_payment_status = postgresql.ENUM(
    'UNPAID', 'PARTIAL', 'PAID', name='purchase_payment_status', create_type=False
)
stock_movement_type = postgresql.ENUM(
    'SALE', 'PURCHASE', 'ADJUSTMENT', 'RETURN', name='stock_movement_type', create_type=False
)

ENUMS = (
    shift_status,
    instrument_status,
    reference_type,
    instrument_kind,
    payment_method,
    purchase_order_status,
    purchase_payment_status,
    stock_movement_type,
)


def _money(name: str, nullable: bool = False) -> sa.Column:
    if nullable:
        return sa.Column(name, sa.Numeric(12, 2), nullable=True)
    return sa.Column(name, sa.Numeric(12, 2), nullable=False, server_default='0.00')


def _instrument_table(name: str, counterparty: str) -> None:
    op.create_table(
        name,
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column(counterparty, sa.UUID(), nullable=True),
        sa.Column('reference_type', reference_type, nullable=True),
        sa.Column('reference_id', sa.UUID(), nullable=True),
        sa.Column('total_amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('outstanding_balance', sa.Numeric(12, 2), nullable=False),
        sa.Column('status', instrument_status, nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('created_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('total_amount > 0', name=f'ck_{name}_total_positive'),
        sa.CheckConstraint(
            'outstanding_balance <= total_amount', name=f'ck_{name}_balance_within_total'
        ),
        sa.CheckConstraint('outstanding_balance >= 0', name=f'ck_{name}_balance_non_negative'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('store_id', counterparty, 'reference_id', 'status', 'due_date'):
        op.create_index(op.f(f'ix_{name}_{column}'), name, [column], unique=False)


def upgrade() -> None:
    bind = op.get_bind()
    for enum_type in ENUMS:
        enum_type.create(bind, checkfirst=True)

    op.create_table(
        'stores',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='true'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'shifts',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column('status', shift_status, nullable=False),
        sa.Column('opened_by', sa.String(length=100), nullable=False),
        sa.Column('start_time', sa.DateTime(), nullable=False),
        _money('start_balance'),
        _money('cash_sales'),
        _money('card_sales'),
        _money('transfer_sales'),
        _money('other_sales'),
        _money('expenses_total'),
        sa.Column('end_time', sa.DateTime(), nullable=True),
        sa.Column('closed_by', sa.String(length=100), nullable=True),
        _money('end_balance', nullable=True),
        _money('expected_balance', nullable=True),
        _money('difference', nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _money('declared_total_sales', nullable=True),
        _money('declared_cash', nullable=True),
        _money('declared_card', nullable=True),
        _money('declared_transfer', nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_shifts_store_id'), 'shifts', ['store_id'], unique=False)
    op.create_index(op.f('ix_shifts_status'), 'shifts', ['status'], unique=False)
    op.create_index(
        'uq_shifts_one_open_per_store',
        'shifts',
        ['store_id'],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
    )

    _instrument_table('receivables', 'client_id')
    _instrument_table('payables', 'supplier_id')

    op.create_table(
        'payment_transactions',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column('instrument_id', sa.UUID(), nullable=False),
        sa.Column('instrument_kind', instrument_kind, nullable=False),
        sa.Column('amount', sa.Numeric(12, 2), nullable=False),
        sa.Column('method', payment_method, nullable=False),
        sa.Column('reference', sa.String(length=255), nullable=True),
        sa.Column('recorded_by', sa.String(length=100), nullable=False),
        sa.Column('shift_id', sa.UUID(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('amount > 0', name='ck_payment_transactions_amount_positive'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'ix_payment_transactions_instrument',
        'payment_transactions',
        ['instrument_kind', 'instrument_id'],
        unique=False,
    )
    for column in ('store_id', 'shift_id', 'created_at'):
        op.create_index(
            op.f(f'ix_payment_transactions_{column}'), 'payment_transactions', [column]
        )

    op.create_table(
        'inventory_items',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column('catalog_product_id', sa.UUID(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        _money('cost_price'),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_inventory_items_store_id'), 'inventory_items', ['store_id'])
    op.create_index(
        op.f('ix_inventory_items_catalog_product_id'), 'inventory_items', ['catalog_product_id']
    )

    op.create_table(
        'stock_movements',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column('inventory_item_id', sa.UUID(), nullable=False),
        sa.Column('product_id', sa.UUID(), nullable=True),
        sa.Column('type', stock_movement_type, nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('previous_stock', sa.Integer(), nullable=False),
        sa.Column('new_stock', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=255), nullable=False),
        sa.Column('reference_id', sa.UUID(), nullable=True),
        sa.Column('recorded_by', sa.String(length=100), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('store_id', 'inventory_item_id', 'reference_id'):
        op.create_index(op.f(f'ix_stock_movements_{column}'), 'stock_movements', [column])

    op.create_table(
        'purchase_orders',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('store_id', sa.UUID(), nullable=False),
        sa.Column('supplier_id', sa.UUID(), nullable=False),
        sa.Column('status', purchase_order_status, nullable=False),
        sa.Column('payment_status', purchase_payment_status, nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        _money('tax_total'),
        sa.Column('total', sa.Numeric(12, 2), nullable=False),
        sa.Column('issued_at', sa.DateTime(), nullable=False),
        sa.Column('expected_date', sa.Date(), nullable=True),
        sa.Column('received_at', sa.DateTime(), nullable=True),
        sa.Column('received_by', sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('store_id', 'supplier_id', 'status'):
        op.create_index(op.f(f'ix_purchase_orders_{column}'), 'purchase_orders', [column])

    op.create_table(
        'purchase_order_items',
        sa.Column('id', sa.UUID(), nullable=False),
        sa.Column('purchase_order_id', sa.UUID(), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('inventory_item_id', sa.UUID(), nullable=True),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('received_quantity', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_price', sa.Numeric(12, 2), nullable=False),
        sa.Column('subtotal', sa.Numeric(12, 2), nullable=False),
        sa.CheckConstraint('quantity > 0', name='ck_purchase_order_items_quantity_positive'),
        sa.ForeignKeyConstraint(['purchase_order_id'], ['purchase_orders.id']),
        sa.ForeignKeyConstraint(['inventory_item_id'], ['inventory_items.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        op.f('ix_purchase_order_items_purchase_order_id'),
        'purchase_order_items',
        ['purchase_order_id'],
    )


def downgrade() -> None:
    op.drop_table('purchase_order_items')
    op.drop_table('purchase_orders')
    op.drop_table('stock_movements')
    op.drop_table('inventory_items')
    op.drop_table('payment_transactions')
    op.drop_table('payables')
    op.drop_table('receivables')
    op.drop_index('uq_shifts_one_open_per_store', table_name='shifts')
    op.drop_table('shifts')
    op.drop_table('stores')

    bind = op.get_bind()
    for enum_type in reversed(ENUMS):
        enum_type.drop(bind, checkfirst=True)
