"""add discounts table and users.date_of_birth

Revision ID: 0002_add_discounts_and_birth_date
Revises: 0001_create_store_tables
Create Date: 2026-10-18 00:00:00.000000
"""
from alembic import op
import sqlalchemy as sa

revision = '0002_add_discounts_and_birth_date'
down_revision = '0001_create_store_tables'
branch_labels = None
depends_on = None


def upgrade():
    op.add_column('users', sa.Column('date_of_birth', sa.Date(), nullable=True))

    op.create_table(
        'discounts',
        sa.Column('id', sa.String(length=20), primary_key=True),
        sa.Column('code', sa.String(length=50), nullable=False),
        sa.Column('type', sa.String(length=20), nullable=False, server_default='Fixed'),
        sa.Column('value', sa.Numeric(10, 4), nullable=False),
        sa.Column('max_uses', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=20), nullable=False, server_default='Inactive'),
        sa.Column('effective_from', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint('code', name='uq_discounts_code'),
        sa.CheckConstraint('value >= 0', name='ck_discounts_value_nonneg'),
        sa.CheckConstraint('max_uses >= 0', name='ck_discounts_max_uses_nonneg'),
    )
    op.create_index('ix_discounts_status_expires', 'discounts', ['status', 'expires_at'])


def downgrade():
    op.drop_index('ix_discounts_status_expires', table_name='discounts')
    op.drop_table('discounts')
    op.drop_column('users', 'date_of_birth')
