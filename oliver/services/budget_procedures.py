"""
Budget lifecycle procedures.

Each procedure runs in its own transaction and answers with a plain result
dict, ``{"success": True, ...}`` or ``{"success": False, "error": ...}``.
Database failures are rolled back and raised as RemoteError.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import and_, delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from oliver.exceptions import RemoteError
from oliver.logging_config import get_logger
from oliver.models.budget import Budget
from oliver.models.budget_deletion_audit import BudgetDeletionAudit
from oliver.models.budget_part import BudgetPart
from oliver.schemas.budget import BudgetSnapshot
from oliver.utils.date_utils import utc_now

logger = get_logger(__name__)

MASS_DELETION_REASON = "Exclusão em massa pelo usuário"


def _snapshot(budget: Budget) -> dict:
    return BudgetSnapshot.model_validate(budget).model_dump(mode="json")


def _audit_for(budget: Budget, user_id: str, deletion_reason: Optional[str], deleted_at: datetime) -> BudgetDeletionAudit:
    return BudgetDeletionAudit(
        budget_id=budget.id,
        budget_data=_snapshot(budget),
        deleted_by=user_id,
        deletion_reason=deletion_reason,
        can_restore=True,
        created_at=deleted_at,
    )


async def fail_transport(session: AsyncSession, action: str, error: SQLAlchemyError, budget_id: Optional[str] = None):
    """Roll back and re-raise a database failure as RemoteError."""
    await session.rollback()
    logger.error(f"Database error during {action} (budget={budget_id}): {error}")
    raise RemoteError(f"Erro de comunicação com o banco de dados ao {action}", budget_id=budget_id) from error


async def find_budget(session: AsyncSession, user_id: str, budget_id: str) -> Optional[Budget]:
    """Look up a budget of ``user_id``, deleted or not."""
    try:
        return (await session.execute(
            select(Budget).filter(and_(Budget.id == budget_id, Budget.owner_id == user_id))
        )).scalar_one_or_none()
    except SQLAlchemyError as e:
        await fail_transport(session, "consultar orçamento", e, budget_id)


async def soft_delete_budget_with_audit(
    session: AsyncSession,
    user_id: str,
    budget_id: str,
    deletion_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Move one active budget owned by ``user_id`` to the trash.

    Sets ``deleted_at`` and writes an audit record holding a snapshot of the
    budget as it was at deletion time.

    Returns:
        {"success", "budget_id", "deleted_at"} or {"success": False, "error"}
    """
    try:
        budget = (await session.execute(
            select(Budget).filter(and_(Budget.id == budget_id, Budget.owner_id == user_id))
        )).scalar_one_or_none()

        if budget is None:
            return {"success": False, "error": "Orçamento não encontrado"}
        if budget.is_deleted:
            return {"success": False, "error": "Orçamento já está na lixeira"}

        deleted_at = now or utc_now()
        budget.deleted_at = deleted_at
        session.add(_audit_for(budget, user_id, deletion_reason, deleted_at))
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "excluir orçamento", e, budget_id)

    logger.info(f"Soft-deleted budget {budget_id} for user {user_id}")
    return {"success": True, "budget_id": budget_id, "deleted_at": deleted_at.isoformat()}


async def soft_delete_all_user_budgets(
    session: AsyncSession,
    user_id: str,
    deletion_reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> dict:
    """
    Move every active budget of ``user_id`` to the trash in one transaction.

    Returns:
        {"success": True, "deleted_count"}
    """
    deletion_reason = deletion_reason or MASS_DELETION_REASON
    try:
        budgets = (await session.execute(
            select(Budget).filter(and_(Budget.owner_id == user_id, Budget.deleted_at.is_(None)))
        )).scalars().all()

        deleted_at = now or utc_now()
        for budget in budgets:
            budget.deleted_at = deleted_at
            session.add(_audit_for(budget, user_id, deletion_reason, deleted_at))
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "excluir orçamentos", e)

    logger.info(f"Soft-deleted {len(budgets)} budgets for user {user_id}")
    return {"success": True, "deleted_count": len(budgets)}


async def restore_deleted_budget(
    session: AsyncSession,
    user_id: str,
    budget_id: str,
    now: Optional[datetime] = None,
) -> dict:
    """
    Bring a trashed budget back to the active list.

    Clears ``deleted_at`` and stamps ``restored_at`` on the open audit
    record; ``can_restore`` is left untouched.

    Returns:
        {"success": True, "budget_id"} or {"success": False, "error"}
    """
    try:
        budget = (await session.execute(
            select(Budget).filter(and_(Budget.id == budget_id, Budget.owner_id == user_id))
        )).scalar_one_or_none()

        if budget is None:
            return {"success": False, "error": "Orçamento não encontrado"}
        if not budget.is_deleted:
            return {"success": False, "error": "Orçamento não está na lixeira"}

        audit = (await session.execute(
            select(BudgetDeletionAudit)
            .filter(and_(
                BudgetDeletionAudit.budget_id == budget_id,
                BudgetDeletionAudit.deleted_by == user_id,
                BudgetDeletionAudit.can_restore.is_(True),
                BudgetDeletionAudit.restored_at.is_(None),
            ))
            .order_by(BudgetDeletionAudit.created_at.desc())
            .limit(1)
        )).scalar_one_or_none()

        if audit is None:
            return {"success": False, "error": "Orçamento não pode mais ser restaurado"}

        budget.deleted_at = None
        audit.restored_at = now or utc_now()
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "restaurar orçamento", e, budget_id)

    logger.info(f"Restored budget {budget_id} for user {user_id}")
    return {"success": True, "budget_id": budget_id}


async def delete_budget_parts(session: AsyncSession, budget_id: str) -> int:
    """Hard-delete the line items of a budget. Returns the affected row count."""
    try:
        result = await session.execute(
            delete(BudgetPart).where(BudgetPart.budget_id == budget_id)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "excluir partes do orçamento", e, budget_id)
    return result.rowcount


async def delete_budget_row(session: AsyncSession, user_id: str, budget_id: str) -> int:
    """Hard-delete a budget row, scoped to its owner. Returns the affected row count."""
    try:
        result = await session.execute(
            delete(Budget).where(and_(Budget.id == budget_id, Budget.owner_id == user_id))
        )
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "excluir orçamento da base de dados", e, budget_id)
    return result.rowcount


async def mark_audit_unrestorable(session: AsyncSession, user_id: str, budget_id: str) -> int:
    """Flip ``can_restore`` to false on every audit record of a budget."""
    try:
        result = await session.execute(
            update(BudgetDeletionAudit)
            .where(and_(
                BudgetDeletionAudit.budget_id == budget_id,
                BudgetDeletionAudit.deleted_by == user_id,
            ))
            .values(can_restore=False)
        )
        await session.commit()
    except SQLAlchemyError as e:
        await fail_transport(session, "atualizar auditoria", e, budget_id)
    return result.rowcount
