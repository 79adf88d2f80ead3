"""create budget_parts table

Revision ID: 003
Revises: 002
Create Date: 2026-09-14 10:35:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '003'
down_revision: Union[str, None] = '002'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'budget_parts',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('quantity', sa.Integer(), server_default='1', nullable=False),
        sa.Column('price', sa.Integer(), server_default='0', nullable=False),
        sa.Column('warranty_months', sa.Integer(), nullable=True),
    )

    op.create_foreign_key(
        'fk_budget_parts_budget_id',
        'budget_parts',
        'budgets',
        ['budget_id'],
        ['id'],
        ondelete='CASCADE'
    )

    op.create_index('ix_budget_parts_id', 'budget_parts', ['id'], unique=False)
    op.create_index('ix_budget_parts_budget_id', 'budget_parts', ['budget_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_budget_parts_budget_id', table_name='budget_parts')
    op.drop_index('ix_budget_parts_id', table_name='budget_parts')
    op.drop_constraint('fk_budget_parts_budget_id', 'budget_parts', type_='foreignkey')
    op.drop_table('budget_parts')
