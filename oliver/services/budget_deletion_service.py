"""
Budget deletion service: soft delete (single, all, selected) and restore.

Wraps the lifecycle procedures with in-flight tracking, listing cache
invalidation and user-facing notifications. Failures never escape an
operation; they come back as error notifications.
"""
from typing import Awaitable, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from oliver.exceptions import NotAuthenticated, PartialBatchError, RemoteError
from oliver.logging_config import get_logger
from oliver.models.user import User
from oliver.schemas.operations import OperationResult
from oliver.services import budget_procedures as procedures
from oliver.services.batch import run_sequential
from oliver.services.budget_service import individual_deletion_reason
from oliver.services.notifications import failed, succeeded
from oliver.services.pending_operations import (
    DELETING,
    RESTORING,
    PendingOperations,
    pending_operations,
)
from oliver.services.query_cache import (
    BUDGETS_KEY,
    DELETED_BUDGETS_KEY,
    QueryCache,
    query_cache,
)

logger = get_logger(__name__)

BATCH_DELETION_REASON = "Exclusão em lote"


async def call_procedure(call: Awaitable[dict], fallback_error: str, budget_id: Optional[str] = None) -> dict:
    """
    Await a procedure and turn a ``success: False`` answer into RemoteError.

    Raises:
        RemoteError: The procedure reported failure or the database call failed
    """
    response = await call
    if not response or not response.get("success"):
        error = (response or {}).get("error") or fallback_error
        raise RemoteError(error, budget_id=budget_id)
    return response


class BudgetDeletionService:
    """Soft-delete and restore operations for the current user's budgets."""

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

    @property
    def is_deleting(self) -> bool:
        return self.user_id is not None and self.pending.is_pending(self.user_id, DELETING)

    @property
    def is_restoring(self) -> bool:
        return self.user_id is not None and self.pending.is_pending(self.user_id, RESTORING)

    async def delete_one(self, budget_id: str, deletion_reason: Optional[str] = None) -> OperationResult:
        """
        Move a single budget to the trash.

        Args:
            budget_id: Budget to delete
            deletion_reason: Free-text reason stored on the audit record.
                Defaults to the individual deletion reason naming the client.

        Returns:
            OperationResult with the procedure response as data on success
        """
        user_id = self._require_user()
        with self.pending.track(user_id, DELETING):
            try:
                if deletion_reason is None:
                    budget = await procedures.find_budget(self.session, user_id, budget_id)
                    deletion_reason = individual_deletion_reason(budget)
                response = await call_procedure(
                    procedures.soft_delete_budget_with_audit(
                        self.session, user_id, budget_id, deletion_reason
                    ),
                    "Falha na exclusão do orçamento",
                    budget_id,
                )
            except RemoteError as e:
                logger.error(f"Soft delete of budget {budget_id} failed: {e.message}")
                return failed(
                    "Erro ao excluir",
                    e.message or "Ocorreu um erro ao excluir o orçamento.",
                )

        self.cache.invalidate(BUDGETS_KEY, user_id)
        self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        return succeeded(
            "Orçamento excluído",
            "O orçamento foi movido para a lixeira com sucesso.",
            data=response,
        )

    async def delete_all(self, deletion_reason: Optional[str] = None) -> OperationResult:
        """Move every active budget of the user to the trash in one call."""
        user_id = self._require_user()
        with self.pending.track(user_id, DELETING):
            try:
                response = await call_procedure(
                    procedures.soft_delete_all_user_budgets(self.session, user_id, deletion_reason),
                    "Falha na exclusão em massa",
                )
            except RemoteError as e:
                logger.error(f"Mass deletion for user {user_id} failed: {e.message}")
                return failed(
                    "Erro na exclusão",
                    e.message or "Ocorreu um erro ao excluir os orçamentos.",
                )

        self.cache.invalidate(BUDGETS_KEY, user_id)
        self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        return succeeded(
            "Exclusão concluída",
            f"{response['deleted_count']} orçamento(s) foram movidos para a lixeira.",
            data=response,
        )

    async def delete_selected(self, budget_ids: List[str], deletion_reason: Optional[str] = None) -> OperationResult:
        """
        Move the selected budgets to the trash one at a time.

        Items fail independently; nothing is rolled back. The report in the
        result data lists which ids succeeded and which failed.
        """
        user_id = self._require_user()
        if not budget_ids:
            return failed("Erro", "Nenhum orçamento selecionado.")

        reason = deletion_reason or BATCH_DELETION_REASON

        async def delete(budget_id: str) -> dict:
            return await call_procedure(
                procedures.soft_delete_budget_with_audit(self.session, user_id, budget_id, reason),
                "Falha na exclusão do orçamento",
                budget_id,
            )

        with self.pending.track(user_id, DELETING):
            report = await run_sequential(budget_ids, delete, label="delete-selected")

        self.cache.invalidate(BUDGETS_KEY, user_id)
        self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        data = report.to_dict()
        try:
            report.raise_for_outcome()
        except PartialBatchError:
            return succeeded(
                "Exclusão parcial",
                f"{report.success_count} de {report.total_count} orçamentos foram excluídos. Alguns falharam.",
                data=data,
            )
        except RemoteError:
            return failed(
                "Falha na exclusão",
                f"Não foi possível excluir nenhum dos {report.total_count} orçamentos selecionados.",
                data=data,
            )
        return succeeded(
            "Exclusão concluída",
            f"{report.success_count} orçamento(s) foram movidos para a lixeira.",
            data=data,
        )

    async def restore(self, budget_id: str) -> OperationResult:
        """Restore a trashed budget to the active list."""
        user_id = self._require_user()
        with self.pending.track(user_id, RESTORING):
            try:
                response = await call_procedure(
                    procedures.restore_deleted_budget(self.session, user_id, budget_id),
                    "Falha na restauração do orçamento",
                    budget_id,
                )
            except RemoteError as e:
                logger.error(f"Restore of budget {budget_id} failed: {e.message}")
                return failed(
                    "Erro ao restaurar",
                    e.message or "Ocorreu um erro ao restaurar o orçamento.",
                )

        self.cache.invalidate(BUDGETS_KEY, user_id)
        self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
        return succeeded(
            "Orçamento restaurado",
            "O orçamento foi restaurado com sucesso.",
            data=response,
        )
