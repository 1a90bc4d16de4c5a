"""
Staged, all-or-nothing writes against the query cache.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Hashable, List, Tuple

logger = logging.getLogger(__name__)

QueryKey = Tuple[Hashable, ...]


class CacheTransaction:
    """
    Collects keyed writes and applies them to the cache in one step.

    Nothing is visible to readers until commit(). Updates against keys with
    no cached data are skipped, so patching an entry that was never fetched
    is a no-op rather than an error.
    """

    def __init__(self, cache):
        self.cache = cache
        self.staged: Dict[QueryKey, Any] = {}
        self.skipped: List[QueryKey] = []

    def read(self, key: QueryKey) -> Any:
        """Staged value if one exists, else the cached snapshot."""
        key = tuple(key)
        if key in self.staged:
            return self.staged[key]
        return self.cache.get_data(key)

    def set(self, key: QueryKey, data: Any) -> None:
        self.staged[tuple(key)] = data

    def update(self, key: QueryKey, updater: Callable[[Any], Any]) -> bool:
        """
        Stage ``updater(current)`` for ``key``.

        Returns:
            False if the key holds no data and the update was skipped
        """
        key = tuple(key)
        if key not in self.staged and not self.cache.has_data(key):
            logger.debug(f"No cached data for {key}, skipping update")
            self.skipped.append(key)
            return False
        self.staged[key] = updater(self.read(key))
        return True

    def commit(self) -> None:
        if self.staged:
            self.cache._apply_writes(self.staged)
        self.staged = {}

    def rollback(self) -> None:
        if self.staged:
            logger.debug(f"Rolling back {len(self.staged)} staged cache write(s)")
        self.staged = {}


@contextmanager
def transaction(cache):
    """
    Context manager for cache transactions.

    Usage:
        with transaction(cache) as txn:
            txn.update(("courses",), patch_list)
            txn.update(("courses", course_id), patch_one)
            # If an exception is raised, neither write is applied
    """
    txn = CacheTransaction(cache)
    try:
        yield txn
        txn.commit()
    except Exception:
        txn.rollback()
        raise
