"""create budgets table

Revision ID: 002
Revises: 001
Create Date: 2026-09-14 10:20:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '002'
down_revision: Union[str, None] = '001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'budgets',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('owner_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('client_name', sa.String(), nullable=True),
        sa.Column('client_phone', sa.String(), nullable=True),
        sa.Column('device_model', sa.String(), nullable=True),
        sa.Column('device_type', sa.String(), nullable=True),
        sa.Column('issue', sa.Text(), nullable=True),
        sa.Column('total_price', sa.Integer(), server_default='0', nullable=False),
        sa.Column('installments', sa.Integer(), server_default='1', nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    )

    op.create_foreign_key(
        'fk_budgets_owner_id',
        'budgets',
        'users',
        ['owner_id'],
        ['id'],
        ondelete='CASCADE'
    )

    op.create_index('ix_budgets_id', 'budgets', ['id'], unique=False)
    op.create_index('ix_budgets_owner_id', 'budgets', ['owner_id'], unique=False)
    op.create_index('ix_budgets_deleted_at', 'budgets', ['deleted_at'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_budgets_deleted_at', table_name='budgets')
    op.drop_index('ix_budgets_owner_id', table_name='budgets')
    op.drop_index('ix_budgets_id', table_name='budgets')
    op.drop_constraint('fk_budgets_owner_id', 'budgets', type_='foreignkey')
    op.drop_table('budgets')
