"""unique_open_monthly_invoice

Revision ID: 9c2f6d1e8b35
Revises: 4a1c9e2b7d10
Create Date: 2026-10-19 14:03:27.552118

At most one non-cancelled monthly usage invoice per user and period.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '9c2f6d1e8b35'
down_revision: Union[str, Sequence[str], None] = '4a1c9e2b7d10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

OPEN_MONTHLY_INVOICE = "invoice_type = 'monthly_usage' AND status <> 'cancelled'"


def upgrade() -> None:
    """Add the partial unique index on open monthly invoices."""
    op.create_index(
        'uq_invoices_open_monthly_period',
        'invoices',
        ['user_id', 'period_start'],
        unique=True,
        postgresql_where=sa.text(OPEN_MONTHLY_INVOICE),
    )


def downgrade() -> None:
    """Drop the partial unique index."""
    op.drop_index('uq_invoices_open_monthly_period', table_name='invoices')
