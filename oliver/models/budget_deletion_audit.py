"""
Audit trail of soft-deleted budgets. Rows double as the trash listing.
"""
import uuid
from sqlalchemy import Column, DateTime, Boolean, Text, JSON
from sqlalchemy.dialects.postgresql import UUID, JSONB
from sqlalchemy.sql import func
from oliver.db import Base
from oliver.utils.date_utils import utc_now


class BudgetDeletionAudit(Base):
    __tablename__ = "budget_deletion_audit"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    # No foreign key: the audit row outlives a purged budget
    budget_id = Column(UUID(as_uuid=False), nullable=False, index=True)
    budget_data = Column(JSONB().with_variant(JSON(), "sqlite"), nullable=False)
    deleted_by = Column(UUID(as_uuid=False), nullable=False, index=True)
    deletion_reason = Column(Text, nullable=True)
    can_restore = Column(Boolean, nullable=False, default=True, server_default="true")
    restored_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<BudgetDeletionAudit(id={self.id}, budget_id={self.budget_id}, "
            f"can_restore={self.can_restore}, restored_at={self.restored_at})>"
        )
