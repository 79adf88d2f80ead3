from collections import defaultdict
from contextlib import contextmanager
from typing import Dict, Set

from oliver.exceptions import OperationInProgressError

DELETING = "deleting"
RESTORING = "restoring"
PURGING = "purging"


class PendingOperations:
    """
    Tracks in-flight mutations per user within this process.

    A second mutation of the same kind is refused while the first is
    outstanding; there is no other deduplication.
    """

    def __init__(self):
        self._pending: Dict[str, Set[str]] = defaultdict(set)

    def is_pending(self, user_id: str, kind: str) -> bool:
        return kind in self._pending.get(user_id, set())

    @contextmanager
    def track(self, user_id: str, kind: str):
        if self.is_pending(user_id, kind):
            raise OperationInProgressError(f"Another {kind} operation is still running")
        self._pending[user_id].add(kind)
        try:
            yield
        finally:
            self._pending[user_id].discard(kind)
            if not self._pending[user_id]:
                del self._pending[user_id]


pending_operations = PendingOperations()
