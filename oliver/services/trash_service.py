"""
Trash service: listing of restorable deleted budgets and permanent purge.

Purge is three separate statements (parts, budget row, audit flag), each
committed on its own. A failure midway does not undo the earlier steps:
if the budget row delete fails after the parts were removed, the budget
is left in the trash without its line items.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from oliver.config import settings
from oliver.exceptions import NotAuthenticated, PartialBatchError, RemoteError
from oliver.logging_config import get_logger
from oliver.models.budget_deletion_audit import BudgetDeletionAudit
from oliver.models.user import User
from oliver.schemas.budget import BudgetSnapshot
from oliver.schemas.operations import OperationResult
from oliver.schemas.trash import TrashEntryResponse
from oliver.services import budget_procedures as procedures
from oliver.services.batch import run_sequential
from oliver.services.notifications import failed, succeeded
from oliver.services.pending_operations import PURGING, PendingOperations, pending_operations
from oliver.services.query_cache import BUDGETS_KEY, DELETED_BUDGETS_KEY, QueryCache, query_cache
from oliver.utils.date_utils import days_remaining, ensure_aware
from oliver.utils.formatting import format_price

logger = get_logger(__name__)


def trash_conditions(user_id: Optional[str] = None) -> list:
    """Filters selecting audit records that still belong in the trash."""
    conditions = [
        BudgetDeletionAudit.can_restore.is_(True),
        BudgetDeletionAudit.restored_at.is_(None),
    ]
    if user_id is not None:
        conditions.append(BudgetDeletionAudit.deleted_by == user_id)
    return conditions


def retention_status(
    deleted_at: datetime,
    now: Optional[datetime] = None,
    retention_days: Optional[int] = None,
    expiring_soon_days: Optional[int] = None,
) -> dict:
    """
    Countdown fields shown next to a trash entry.

    Returns:
        dict with days_remaining, expiring_soon, scheduled_for_deletion and
        status_message
    """
    retention_days = retention_days if retention_days is not None else settings.TRASH_RETENTION_DAYS
    expiring_soon_days = expiring_soon_days if expiring_soon_days is not None else settings.TRASH_EXPIRING_SOON_DAYS

    remaining = days_remaining(deleted_at, retention_days=retention_days, now=now)
    if remaining > 0:
        message = f"Será excluído automaticamente em {remaining} dias"
    else:
        message = "Programado para exclusão automática"
    return {
        "days_remaining": remaining,
        "expiring_soon": remaining <= expiring_soon_days,
        "scheduled_for_deletion": remaining == 0,
        "status_message": message,
    }


async def purge_budget(session: AsyncSession, user_id: str, budget_id: str) -> None:
    """
    Permanently delete a budget: parts, then the budget row, then the audit flag.

    Raises:
        RemoteError: Deleting the parts or the budget row failed. Steps that
            already completed stay completed.
    """
    try:
        await procedures.delete_budget_parts(session, budget_id)
    except RemoteError as e:
        raise RemoteError("Erro ao excluir partes do orçamento", budget_id=budget_id) from e

    try:
        deleted = await procedures.delete_budget_row(session, user_id, budget_id)
    except RemoteError as e:
        raise RemoteError("Erro ao excluir orçamento da base de dados", budget_id=budget_id) from e
    if not deleted:
        logger.warning(f"Purge of budget {budget_id}: no budget row matched owner {user_id}")

    try:
        await procedures.mark_audit_unrestorable(session, user_id, budget_id)
    except RemoteError as e:
        # The budget is already gone; only the trash flag is stale
        logger.error(f"Purge of budget {budget_id}: audit update failed: {e.message}")

    logger.info(f"Purged budget {budget_id} for user {user_id}")


class TrashService:
    """Trash listing, permanent deletion and emptying for the current user."""

    def __init__(
        self,
        session: AsyncSession,
        user: Optional[User],
        cache: QueryCache = query_cache,
        pending: PendingOperations = pending_operations,
    ):
        self.session = session
        self.user = user
        # Captured up front; ORM attributes expire on rollback
        self.user_id = user.id if user is not None else None
        self.cache = cache
        self.pending = pending

    def _require_user(self) -> str:
        if self.user_id is None:
            raise NotAuthenticated()
        return self.user_id

    def _invalidate(self, user_id: str) -> None:
        self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        self.cache.invalidate(BUDGETS_KEY, user_id)

    async def _fetch_records(self, user_id: str) -> List[dict]:
        cached = self.cache.get(DELETED_BUDGETS_KEY, user_id)
        if cached is not None:
            return cached

        generation = self.cache.generation(DELETED_BUDGETS_KEY, user_id)
        try:
            rows = (await self.session.execute(
                select(BudgetDeletionAudit)
                .filter(and_(*trash_conditions(user_id)))
                .order_by(BudgetDeletionAudit.created_at.desc())
            )).scalars().all()
        except SQLAlchemyError as e:
            await procedures.fail_transport(self.session, "consultar a lixeira", e)

        records = [
            {
                "id": row.id,
                "budget_id": row.budget_id,
                "budget_data": BudgetSnapshot.model_validate(row.budget_data),
                "deletion_reason": row.deletion_reason,
                "created_at": ensure_aware(row.created_at),
            }
            for row in rows
        ]
        self.cache.set(DELETED_BUDGETS_KEY, user_id, records, generation=generation)
        return records

    async def list_trash(self, now: Optional[datetime] = None) -> List[TrashEntryResponse]:
        """
        Restorable deleted budgets, newest deletion first.

        Args:
            now: Reference time for the retention countdown

        Returns:
            List of trash entries with countdown fields filled in
        """
        user_id = self._require_user()
        records = await self._fetch_records(user_id)
        return [
            TrashEntryResponse(
                **record,
                **retention_status(record["created_at"], now=now),
                formatted_price=format_price(record["budget_data"].total_price),
            )
            for record in records
        ]

    async def _has_trash_entry(self, user_id: str, budget_id: str) -> bool:
        try:
            entry = (await self.session.execute(
                select(BudgetDeletionAudit.id)
                .filter(and_(BudgetDeletionAudit.budget_id == budget_id, *trash_conditions(user_id)))
                .limit(1)
            )).scalar_one_or_none()
        except SQLAlchemyError as e:
            await procedures.fail_transport(self.session, "consultar a lixeira", e, budget_id)
        return entry is not None

    async def purge(self, budget_id: str) -> OperationResult:
        """Permanently delete one budget that is in the trash."""
        user_id = self._require_user()
        with self.pending.track(user_id, PURGING):
            try:
                if not await self._has_trash_entry(user_id, budget_id):
                    raise RemoteError("Orçamento não encontrado na lixeira", budget_id=budget_id)
                await purge_budget(self.session, user_id, budget_id)
            except RemoteError as e:
                logger.error(f"Permanent deletion of budget {budget_id} failed: {e.message}")
                self._invalidate(user_id)
                return failed(
                    "Erro ao excluir permanentemente",
                    e.message or "Não foi possível excluir o orçamento permanentemente.",
                )

        self._invalidate(user_id)
        return succeeded(
            "Orçamento excluído permanentemente",
            "O orçamento foi completamente removido da base de dados.",
            data={"budget_id": budget_id},
        )

    async def empty_trash(self) -> OperationResult:
        """Permanently delete every budget in the trash, one at a time."""
        user_id = self._require_user()
        with self.pending.track(user_id, PURGING):
            self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
            try:
                records = await self._fetch_records(user_id)
            except RemoteError as e:
                return failed("Erro ao esvaziar lixeira", e.message)
            if not records:
                return failed("Erro ao esvaziar lixeira", "Nenhum orçamento na lixeira para excluir")

            async def purge(budget_id: str) -> None:
                await purge_budget(self.session, user_id, budget_id)

            report = await run_sequential(
                [record["budget_id"] for record in records], purge, label="empty-trash"
            )

        self._invalidate(user_id)
        data = report.to_dict()
        try:
            report.raise_for_outcome()
        except PartialBatchError:
            return succeeded(
                "Limpeza parcial da lixeira",
                f"{report.success_count} de {report.total_count} orçamentos foram excluídos. "
                f"{report.error_count} falharam.",
                data=data,
            )
        except RemoteError:
            return failed(
                "Falha ao esvaziar lixeira",
                f"Não foi possível excluir nenhum dos {report.total_count} orçamentos da lixeira.",
                data=data,
            )
        return succeeded(
            "Lixeira esvaziada",
            f"{report.success_count} orçamento(s) foram excluídos permanentemente da base de dados.",
            data=data,
        )
