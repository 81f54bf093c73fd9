"""create jars and transactions tables

Revision ID: create_jars_and_transactions
Revises:
Create Date: 2025-03-31

"""
from datetime import datetime, timezone
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = 'create_jars_and_transactions'
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    jars = op.create_table(
        'jars',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(length=50), nullable=False),
        sa.Column('percentage', sa.Numeric(5, 2), nullable=False),
        sa.Column('description', sa.String(length=500), nullable=False),
        sa.Column('current_balance', sa.Numeric(18, 2), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('current_balance >= 0', name='ck_jars_balance_non_negative'),
        sa.CheckConstraint('percentage >= 0 AND percentage <= 100', name='ck_jars_percentage_range'),
    )
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer, primary_key=True, autoincrement=True),
        sa.Column('source_jar_id', sa.Integer, sa.ForeignKey('jars.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('destination_jar_id', sa.Integer, sa.ForeignKey('jars.id', ondelete='RESTRICT'), nullable=False),
        sa.Column('amount', sa.Numeric(18, 2), nullable=False),
        sa.Column('description', sa.String(length=200), nullable=False),
        sa.Column('transaction_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('amount > 0', name='ck_transactions_amount_positive'),
        sa.CheckConstraint('source_jar_id <> destination_jar_id', name='ck_transactions_distinct_jars'),
    )
    op.create_index('ix_transactions_source_jar_id', 'transactions', ['source_jar_id'])
    op.create_index('ix_transactions_destination_jar_id', 'transactions', ['destination_jar_id'])
    op.create_index('ix_transactions_date_id', 'transactions', ['transaction_date', 'id'])

    now = datetime.now(timezone.utc)
    op.bulk_insert(jars, [
        {'id': 1, 'name': 'Necessities', 'percentage': 50, 'description': 'Essential expenses like housing, utilities, groceries', 'current_balance': 0, 'created_at': now},
        {'id': 2, 'name': 'Financial Freedom', 'percentage': 10, 'description': 'Long-term investments and wealth building', 'current_balance': 0, 'created_at': now},
        {'id': 3, 'name': 'Education', 'percentage': 10, 'description': 'Personal development and learning', 'current_balance': 0, 'created_at': now},
        {'id': 4, 'name': 'Long-term Savings', 'percentage': 10, 'description': 'Emergency fund and future goals', 'current_balance': 0, 'created_at': now},
        {'id': 5, 'name': 'Play', 'percentage': 10, 'description': 'Entertainment and fun activities', 'current_balance': 0, 'created_at': now},
        {'id': 6, 'name': 'Give', 'percentage': 10, 'description': 'Charitable donations and helping others', 'current_balance': 0, 'created_at': now},
    ])
    if op.get_bind().dialect.name == 'postgresql':
        # Explicit ids above do not advance the serial sequence
        op.execute("SELECT setval(pg_get_serial_sequence('jars', 'id'), (SELECT MAX(id) FROM jars))")

def downgrade():
    op.drop_index('ix_transactions_date_id', table_name='transactions')
    op.drop_index('ix_transactions_destination_jar_id', table_name='transactions')
    op.drop_index('ix_transactions_source_jar_id', table_name='transactions')
    op.drop_table('transactions')
    op.drop_table('jars')
