import uuid
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
from oliver.db import Base
from oliver.utils.date_utils import utc_now


class Budget(Base):
    """A repair price quote ("orçamento")."""
    __tablename__ = "budgets"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    owner_id = Column(UUID(as_uuid=False), ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    client_name = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)
    device_model = Column(String, nullable=True)
    device_type = Column(String, nullable=True)
    issue = Column(Text, nullable=True)
    total_price = Column(Integer, nullable=False, default=0)  # centavos
    installments = Column(Integer, nullable=False, default=1)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utc_now, server_default=func.now(), onupdate=utc_now, nullable=False)
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True)

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def __repr__(self):
        return f"<Budget(id={self.id}, owner_id={self.owner_id}, deleted_at={self.deleted_at})>"
