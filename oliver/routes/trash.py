from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from oliver.dependencies import get_db, get_current_user
from oliver.exceptions import InternalServerError, RemoteError
from oliver.models.user import User
from oliver.routes.responses import respond
from oliver.schemas.operations import OperationResult
from oliver.schemas.trash import TrashListResponse
from oliver.services.budget_deletion_service import BudgetDeletionService
from oliver.services.trash_service import TrashService
from oliver.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/trash", tags=["Trash"])


@router.get("", response_model=TrashListResponse)
async def list_trash(
    now: Optional[datetime] = Query(default=None, description="Reference time for the countdown (ISO8601)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List restorable deleted budgets, newest deletion first."""
    try:
        entries = await TrashService(db, current_user).list_trash(now=now)
    except RemoteError as e:
        logger.error(f"Error fetching trash: {e.message}")
        raise InternalServerError("Failed to fetch trash")
    return {"count": len(entries), "items": entries}


@router.post("/{budget_id}/restore", response_model=OperationResult)
async def restore_budget(
    budget_id: str,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Restore a budget from the trash."""
    result = await BudgetDeletionService(db, current_user).restore(budget_id)
    return respond(result, response)


@router.delete("/{budget_id}", response_model=OperationResult)
async def purge_budget(
    budget_id: str,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a budget from the trash. Irreversible."""
    result = await TrashService(db, current_user).purge(budget_id)
    return respond(result, response)


@router.delete("", response_model=OperationResult)
async def empty_trash(
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete everything in the trash."""
    result = await TrashService(db, current_user).empty_trash()
    return respond(result, response)
