"""PromptPay accounts, payment account link and customer delivery preference

Revision ID: 002_promptpay_and_preferences
Revises: 001_initial_schema
Create Date: 2026-10-19

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers
revision = '002_promptpay_and_preferences'
down_revision = '001_initial_schema'


def upgrade():
    op.create_table(
        'promptpay_accounts',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('name', sa.String(120), nullable=False),
        sa.Column('phone_number', sa.String(10), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp()),
    )
    op.create_index('ix_promptpay_accounts_is_active', 'promptpay_accounts', ['is_active'])

    op.add_column('order_payments', sa.Column('promptpay_account_id', sa.Uuid(), nullable=True))

    op.add_column('users', sa.Column('default_delivery_location_id', sa.Uuid(), nullable=True))
    op.add_column('users', sa.Column('default_delivery_building_id', sa.Uuid(), nullable=True))


def downgrade():
    with op.batch_alter_table('users') as batch_op:
        batch_op.drop_column('default_delivery_building_id')
        batch_op.drop_column('default_delivery_location_id')
    with op.batch_alter_table('order_payments') as batch_op:
        batch_op.drop_column('promptpay_account_id')
    op.drop_index('ix_promptpay_accounts_is_active', table_name='promptpay_accounts')
    op.drop_table('promptpay_accounts')
