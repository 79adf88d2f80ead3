import uuid
from sqlalchemy import Column, String, ForeignKey, Integer
from sqlalchemy.dialects.postgresql import UUID
from oliver.db import Base


class BudgetPart(Base):
    __tablename__ = "budget_parts"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_id = Column(UUID(as_uuid=False), ForeignKey('budgets.id', ondelete='CASCADE'), nullable=False, index=True)
    name = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    price = Column(Integer, nullable=False, default=0)  # centavos
    warranty_months = Column(Integer, nullable=True)
