"""add_stripe_customer_table

Revision ID: 3b91c4e7d2a0
Revises:
Create Date: 2026-09-17 09:30:12.408113

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b91c4e7d2a0'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'driver_invoice_stripe_customer',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='主键ID'),
        sa.Column('customer_id', sa.Integer(), nullable=False, comment='Invoicing customer id'),
        sa.Column('stripe_id', sa.String(length=255), nullable=False, comment='Stripe customer id (cus_...)'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
        comment='Links invoicing customers to Stripe customers'
    )

    op.create_index('ix_driver_invoice_stripe_customer_customer_id', 'driver_invoice_stripe_customer', ['customer_id'], unique=True)
    op.create_index('ix_driver_invoice_stripe_customer_stripe_id', 'driver_invoice_stripe_customer', ['stripe_id'], unique=True)


def downgrade() -> None:
    op.drop_index('ix_driver_invoice_stripe_customer_stripe_id', table_name='driver_invoice_stripe_customer')
    op.drop_index('ix_driver_invoice_stripe_customer_customer_id', table_name='driver_invoice_stripe_customer')
    op.drop_table('driver_invoice_stripe_customer')
