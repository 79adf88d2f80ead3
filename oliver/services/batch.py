"""
Sequential batch execution with per-item failure tolerance.
"""
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Iterable, List, Optional

from oliver.exceptions import PartialBatchError, RemoteError
from oliver.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class BatchItemFailure:
    budget_id: str
    error: str


@dataclass
class BatchReport:
    """Outcome of a batch: which ids went through and which did not."""
    succeeded: List[str] = field(default_factory=list)
    failed: List[BatchItemFailure] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    @property
    def total_count(self) -> int:
        return self.success_count + self.error_count

    @property
    def outcome(self) -> str:
        if self.error_count == 0:
            return "complete"
        if self.success_count > 0:
            return "partial"
        return "failed"

    def raise_for_outcome(self) -> None:
        """
        Raise for anything short of full success.

        Raises:
            PartialBatchError: Some items succeeded and some failed
            RemoteError: Every item failed
        """
        if self.outcome == "partial":
            raise PartialBatchError(self)
        if self.outcome == "failed":
            raise RemoteError(self.failed[0].error if self.failed else "Batch failed")

    def to_dict(self) -> dict:
        return {
            "outcome": self.outcome,
            "succeeded": list(self.succeeded),
            "failed": [{"budget_id": f.budget_id, "error": f.error} for f in self.failed],
            "success_count": self.success_count,
            "error_count": self.error_count,
            "total_count": self.total_count,
        }


async def run_sequential(
    budget_ids: Iterable[str],
    operation: Callable[[str], Awaitable[object]],
    label: Optional[str] = None,
) -> BatchReport:
    """
    Apply ``operation`` to each id in order, one call at a time.

    A RemoteError on one item is recorded and the loop moves on; completed
    items are never rolled back.

    Args:
        budget_ids: Ids to process
        operation: Coroutine function raising RemoteError on failure
        label: Name used in log lines

    Returns:
        BatchReport folding every item's outcome
    """
    report = BatchReport()
    for budget_id in budget_ids:
        try:
            await operation(budget_id)
        except RemoteError as e:
            logger.error(f"{label or 'batch'}: budget {budget_id} failed: {e.message}")
            report.failed.append(BatchItemFailure(budget_id=budget_id, error=e.message))
            continue
        report.succeeded.append(budget_id)

    logger.info(
        f"{label or 'batch'} finished: {report.success_count}/{report.total_count} succeeded"
    )
    return report
