from oliver.db import Base
from oliver.models.user import User
from oliver.models.budget import Budget
from oliver.models.budget_part import BudgetPart
from oliver.models.budget_deletion_audit import BudgetDeletionAudit

__all__ = [
    "Base",
    "User",
    "Budget",
    "BudgetPart",
    "BudgetDeletionAudit",
]
