"""
Retention sweep: permanently deletes trash entries past the retention window.
"""
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from oliver.config import settings
from oliver.db import AsyncSessionLocal
from oliver.logging_config import get_logger
from oliver.models.budget_deletion_audit import BudgetDeletionAudit
from oliver.services.batch import BatchReport, run_sequential
from oliver.services.query_cache import BUDGETS_KEY, DELETED_BUDGETS_KEY, QueryCache, query_cache
from oliver.services.trash_service import purge_budget, trash_conditions
from oliver.utils.date_utils import utc_now

logger = get_logger(__name__)


class RetentionService:
    """Purges trash entries whose retention countdown has reached zero."""

    def __init__(
        self,
        session: AsyncSession,
        retention_days: Optional[int] = None,
        cache: QueryCache = query_cache,
    ):
        self.session = session
        self.retention_days = retention_days if retention_days is not None else settings.TRASH_RETENTION_DAYS
        self.cache = cache

    async def expire_trash(self, now: Optional[datetime] = None) -> BatchReport:
        """
        Purge every restorable trash entry older than the retention window.

        An entry expires once ``days_remaining`` is 0, i.e. once a full
        ``retention_days`` days have elapsed since deletion.

        Args:
            now: Reference time, defaults to the current UTC time

        Returns:
            BatchReport over the expired budget ids
        """
        cutoff = (now or utc_now()) - timedelta(days=self.retention_days)
        rows = (await self.session.execute(
            select(BudgetDeletionAudit.budget_id, BudgetDeletionAudit.deleted_by)
            .filter(and_(*trash_conditions(), BudgetDeletionAudit.created_at <= cutoff))
            .order_by(BudgetDeletionAudit.created_at)
        )).all()

        if not rows:
            logger.info("Retention sweep: nothing to expire")
            return BatchReport()

        owners = {budget_id: deleted_by for budget_id, deleted_by in rows}

        async def expire(budget_id: str) -> None:
            await purge_budget(self.session, owners[budget_id], budget_id)

        report = await run_sequential(list(owners), expire, label="retention-sweep")

        for user_id in set(owners.values()):
            self.cache.invalidate(DELETED_BUDGETS_KEY, user_id)
            self.cache.invalidate(BUDGETS_KEY, user_id)
        return report


async def run_retention_sweep() -> None:
    """Scheduler entry point; opens its own session."""
    async with AsyncSessionLocal() as session:
        try:
            report = await RetentionService(session).expire_trash()
            logger.info(
                f"Retention sweep expired {report.success_count} budgets, "
                f"{report.error_count} failures"
            )
        except Exception as e:
            logger.error(f"Retention sweep failed: {e}", exc_info=True)
