"""create budget_deletion_audit table

Revision ID: 004
Revises: 003
Create Date: 2026-09-16 18:10:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '004'
down_revision: Union[str, None] = '003'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # budget_id has no foreign key: audit rows survive a permanent purge
    op.create_table(
        'budget_deletion_audit',
        sa.Column('id', postgresql.UUID(as_uuid=False), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('budget_id', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('budget_data', postgresql.JSONB(), nullable=False),
        sa.Column('deleted_by', postgresql.UUID(as_uuid=False), nullable=False),
        sa.Column('deletion_reason', sa.Text(), nullable=True),
        sa.Column('can_restore', sa.Boolean(), server_default=sa.text('true'), nullable=False),
        sa.Column('restored_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )

    op.create_index('ix_budget_deletion_audit_id', 'budget_deletion_audit', ['id'], unique=False)
    op.create_index('ix_budget_deletion_audit_budget_id', 'budget_deletion_audit', ['budget_id'], unique=False)
    op.create_index('ix_budget_deletion_audit_deleted_by', 'budget_deletion_audit', ['deleted_by'], unique=False)
    # Trash listing: restorable rows of one user, newest first
    op.create_index(
        'ix_budget_deletion_audit_trash',
        'budget_deletion_audit',
        ['deleted_by', 'can_restore', 'created_at'],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index('ix_budget_deletion_audit_trash', table_name='budget_deletion_audit')
    op.drop_index('ix_budget_deletion_audit_deleted_by', table_name='budget_deletion_audit')
    op.drop_index('ix_budget_deletion_audit_budget_id', table_name='budget_deletion_audit')
    op.drop_index('ix_budget_deletion_audit_id', table_name='budget_deletion_audit')
    op.drop_table('budget_deletion_audit')
