"""
Per-user cache of listing queries, invalidated after mutations.

Every invalidation bumps a generation counter for the key. A listing reads
the generation before querying and hands it back to ``set``; if a mutation
invalidated the key meanwhile, the now stale rows are not stored.
"""
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from oliver.config import settings
from oliver.logging_config import get_logger
from oliver.utils.date_utils import utc_now

logger = get_logger(__name__)

BUDGETS_KEY = "budgets"
DELETED_BUDGETS_KEY = "deleted-budgets"


class QueryCache:
    """In-process cache keyed by (query key, user id) with a TTL."""

    def __init__(self, ttl_seconds: int = 30):
        self.ttl = timedelta(seconds=ttl_seconds)
        self._entries: Dict[Tuple[str, str], Tuple[Any, datetime]] = {}
        self._key_generations: Dict[str, int] = defaultdict(int)
        self._user_generations: Dict[Tuple[str, str], int] = defaultdict(int)

    def generation(self, key: str, user_id: str) -> Tuple[int, int]:
        return self._key_generations[key], self._user_generations[(key, user_id)]

    def get(self, key: str, user_id: str) -> Optional[Any]:
        entry = self._entries.get((key, user_id))
        if entry is None:
            return None
        value, stored_at = entry
        if utc_now() - stored_at >= self.ttl:
            del self._entries[(key, user_id)]
            return None
        return value

    def set(self, key: str, user_id: str, value: Any, generation: Optional[Tuple[int, int]] = None) -> bool:
        """
        Store a listing result.

        Args:
            generation: Value of ``generation()`` taken before the query ran

        Returns:
            False when the key was invalidated after ``generation`` was taken
        """
        if generation is not None and generation != self.generation(key, user_id):
            logger.debug(f"Skipped stale {key} listing for user {user_id}")
            return False
        self._entries[(key, user_id)] = (value, utc_now())
        return True

    def invalidate(self, key: str, user_id: Optional[str] = None) -> None:
        """Drop one user's entry for ``key``, or every user's when ``user_id`` is None."""
        if user_id is not None:
            self._user_generations[(key, user_id)] += 1
            self._entries.pop((key, user_id), None)
        else:
            self._key_generations[key] += 1
            for cache_key in [k for k in self._entries if k[0] == key]:
                del self._entries[cache_key]
        logger.debug(f"Invalidated cache {key} for user {user_id or '*'}")

    def clear(self) -> None:
        self._entries.clear()
        self._key_generations.clear()
        self._user_generations.clear()


query_cache = QueryCache(ttl_seconds=settings.QUERY_CACHE_TTL_SECONDS)
