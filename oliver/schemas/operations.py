"""
Pydantic schemas for deletion, restore and purge requests and their outcomes.
"""
from typing import Any, Optional
from enum import Enum

from pydantic import BaseModel, Field


class NotificationVariant(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


class Notification(BaseModel):
    """User-visible toast describing the outcome of an operation."""
    title: str
    description: str
    variant: NotificationVariant = NotificationVariant.SUCCESS


class OperationResult(BaseModel):
    success: bool
    notification: Notification
    data: Optional[dict[str, Any]] = None


class DeleteBudgetRequest(BaseModel):
    deletion_reason: Optional[str] = Field(None, max_length=500)


class DeleteSelectedRequest(BaseModel):
    budget_ids: list[str] = Field(default_factory=list, description="Budgets to move to the trash")
    select_all: bool = Field(False, description="Also select every active budget matching search_term")
    search_term: Optional[str] = None
    deletion_reason: Optional[str] = Field(None, max_length=500)

    class Config:
        json_schema_extra = {
            "example": {
                "budget_ids": ["7b0c1d0e-3c5a-4a44-9b8e-2f1c6d1f0a11"],
                "deletion_reason": "Clientes desistiram",
            }
        }
