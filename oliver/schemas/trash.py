from typing import Optional
from datetime import datetime
from pydantic import BaseModel

from oliver.schemas.budget import BudgetSnapshot


class TrashEntryResponse(BaseModel):
    id: str
    budget_id: str
    budget_data: BudgetSnapshot
    deletion_reason: Optional[str] = None
    created_at: datetime
    days_remaining: int
    expiring_soon: bool
    scheduled_for_deletion: bool
    status_message: str
    formatted_price: str


class TrashListResponse(BaseModel):
    count: int
    items: list[TrashEntryResponse]
