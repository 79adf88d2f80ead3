from oliver.schemas.budget import (
    BudgetCreate,
    BudgetUpdate,
    BudgetResponse,
    BudgetPartCreate,
    BudgetPartResponse,
    BudgetSnapshot,
)
from oliver.schemas.operations import (
    Notification,
    NotificationVariant,
    OperationResult,
    DeleteBudgetRequest,
    DeleteSelectedRequest,
)
from oliver.schemas.trash import TrashEntryResponse, TrashListResponse
from oliver.schemas.user import UserResponse

__all__ = [
    "BudgetCreate",
    "BudgetUpdate",
    "BudgetResponse",
    "BudgetPartCreate",
    "BudgetPartResponse",
    "BudgetSnapshot",
    "Notification",
    "NotificationVariant",
    "OperationResult",
    "DeleteBudgetRequest",
    "DeleteSelectedRequest",
    "TrashEntryResponse",
    "TrashListResponse",
    "UserResponse",
]
