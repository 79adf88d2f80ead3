from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Response, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from oliver.dependencies import get_db, get_current_user
from oliver.exceptions import InternalServerError
from oliver.models.user import User
from oliver.routes.responses import respond
from oliver.schemas.budget import BudgetCreate, BudgetResponse, BudgetUpdate
from oliver.schemas.operations import DeleteBudgetRequest, DeleteSelectedRequest, OperationResult
from oliver.services.budget_deletion_service import BudgetDeletionService
from oliver.services.budget_service import BudgetService
from oliver.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/budgets", tags=["Budgets"])


@router.get("")
async def list_budgets(
    q: Optional[str] = Query(default=None, description="Submitted search term (client, device model, issue)"),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List active budgets, newest first, optionally filtered by ``q``."""
    service = BudgetService(db, current_user)
    budgets = await service.search(q)
    return {
        "count": len(budgets),
        "items": budgets,
    }


@router.post("", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_data: BudgetCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a new budget"""
    try:
        return await BudgetService(db, current_user).create(budget_data)
    except SQLAlchemyError as e:
        logger.error(f"Error creating budget: {e}")
        await db.rollback()
        raise InternalServerError("Failed to create budget")


@router.get("/{budget_id}")
async def get_budget(
    budget_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get an active budget with its parts"""
    service = BudgetService(db, current_user)
    budget = await service.get(budget_id)
    return {
        **BudgetResponse.model_validate(budget).model_dump(),
        "parts": await service.get_parts(budget_id),
    }


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget(
    budget_id: str,
    budget_data: BudgetUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update an active budget"""
    try:
        return await BudgetService(db, current_user).update(budget_id, budget_data)
    except SQLAlchemyError as e:
        logger.error(f"Error updating budget {budget_id}: {e}")
        await db.rollback()
        raise InternalServerError("Failed to update budget")


@router.delete("/{budget_id}", response_model=OperationResult)
async def delete_budget(
    budget_id: str,
    response: Response,
    payload: Optional[DeleteBudgetRequest] = Body(default=None),
    deletion_reason: Optional[str] = Query(default=None, max_length=500),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move a budget to the trash. The reason comes from the body or the query string."""
    reason = payload.deletion_reason if payload and payload.deletion_reason else deletion_reason
    result = await BudgetDeletionService(db, current_user).delete_one(budget_id, reason)
    return respond(result, response)


@router.post("/delete-all", response_model=OperationResult)
async def delete_all_budgets(
    response: Response,
    payload: Optional[DeleteBudgetRequest] = Body(default=None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move every active budget to the trash."""
    reason = payload.deletion_reason if payload else None
    result = await BudgetDeletionService(db, current_user).delete_all(reason)
    return respond(result, response)


@router.post("/delete-selected", response_model=OperationResult)
async def delete_selected_budgets(
    payload: DeleteSelectedRequest,
    response: Response,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Move the selected budgets to the trash one by one."""
    try:
        selection = await BudgetService(db, current_user).select(
            payload.budget_ids, payload.select_all, payload.search_term
        )
    except SQLAlchemyError as e:
        logger.error(f"Error resolving budget selection: {e}")
        await db.rollback()
        raise InternalServerError("Failed to resolve selected budgets")

    result = await BudgetDeletionService(db, current_user).delete_selected(
        selection.selected, payload.deletion_reason
    )
    return respond(result, response)
