"""
Key-addressed query cache shared by every view of the learning data.

Keys are tuples such as ``("courses",)`` or ``("graphs", graph_id)``. Each key
holds one QueryState snapshot. Concurrent fetches of a key share a single
in-flight request, and every fetch or write bumps the key's version so a
response that resolves after a newer fetch or write is discarded.
"""
import asyncio
import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional

from masterygraph.core.config import QUERY_STALE_TIME_SECONDS
from masterygraph.core.transaction import CacheTransaction, QueryKey, transaction

logger = logging.getLogger(__name__)

Fetcher = Callable[[], Awaitable[Any]]
Selector = Callable[[Any], Any]
Listener = Callable[["QueryState"], None]


class QueryStatus(Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class QueryState:
    """Snapshot of one cache key as seen by a reader."""
    status: QueryStatus = QueryStatus.IDLE
    data: Any = None
    error: Optional[Exception] = None
    is_fetching: bool = False
    is_stale: bool = True
    updated_at: Optional[float] = None

    @property
    def loading(self) -> bool:
        return self.status is QueryStatus.LOADING

    @property
    def has_data(self) -> bool:
        return self.updated_at is not None


@dataclass
class _Entry:
    state: QueryState = field(default_factory=QueryState)
    version: int = 0
    in_flight: Optional["asyncio.Future"] = None
    invalidated: bool = False


def _consume_exception(task: "asyncio.Future") -> None:
    # Errors are delivered to awaiters; this only keeps asyncio from warning
    # when every awaiter has gone away.
    if not task.cancelled():
        task.exception()


class QueryCache:
    """In-memory store of query snapshots with versioned writes."""

    def __init__(
        self,
        stale_time: float = QUERY_STALE_TIME_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.stale_time = stale_time
        self.clock = clock
        self._entries: Dict[QueryKey, _Entry] = {}
        self._listeners: Dict[QueryKey, List[Listener]] = {}

    def _entry(self, key: QueryKey) -> _Entry:
        key = tuple(key)
        if key not in self._entries:
            self._entries[key] = _Entry()
        return self._entries[key]

    def _is_stale(self, entry: _Entry) -> bool:
        if entry.invalidated or entry.state.updated_at is None:
            return True
        return self.clock() - entry.state.updated_at >= self.stale_time

    # Reads

    def get_state(self, key: QueryKey) -> QueryState:
        entry = self._entries.get(tuple(key))
        if entry is None:
            return QueryState()
        return replace(entry.state, is_stale=self._is_stale(entry))

    def get_data(self, key: QueryKey) -> Any:
        return self.get_state(key).data

    def has_data(self, key: QueryKey) -> bool:
        return self.get_state(key).has_data

    def keys(self) -> List[QueryKey]:
        return list(self._entries)

    async def query(self, key: QueryKey, fetcher: Fetcher, select: Optional[Selector] = None) -> Any:
        """Return fresh cached data for ``key`` or fetch it."""
        key = tuple(key)
        entry = self._entries.get(key)
        if entry is not None and entry.state.has_data and not self._is_stale(entry):
            return entry.state.data
        return await self.fetch(key, fetcher, select)

    async def fetch(
        self,
        key: QueryKey,
        fetcher: Fetcher,
        select: Optional[Selector] = None,
        force: bool = False,
    ) -> Any:
        """
        Fetch ``key`` through ``fetcher`` and store ``select(result)``.

        Args:
            key: Cache key
            fetcher: Coroutine function performing the request
            select: Optional mapping applied to the raw response before storing
            force: Start a new request even if one is already in flight

        Returns:
            The selected data produced by the request this call awaited
        """
        key = tuple(key)
        entry = self._entry(key)

        if entry.in_flight is not None and not force:
            logger.debug(f"Joining in-flight request for {key}")
            return await asyncio.shield(entry.in_flight)

        entry.version += 1
        version = entry.version
        status = QueryStatus.SUCCESS if entry.state.has_data else QueryStatus.LOADING
        entry.state = replace(entry.state, status=status, is_fetching=True)

        task = asyncio.ensure_future(self._run(key, version, fetcher, select))
        task.add_done_callback(_consume_exception)
        entry.in_flight = task
        self._notify(key)
        return await asyncio.shield(task)

    async def refetch(self, key: QueryKey, fetcher: Fetcher, select: Optional[Selector] = None) -> Any:
        return await self.fetch(key, fetcher, select, force=True)

    async def _run(self, key: QueryKey, version: int, fetcher: Fetcher, select: Optional[Selector]) -> Any:
        try:
            raw = await fetcher()
            data = select(raw) if select else raw
        except Exception as e:
            self._resolve(key, version, error=e)
            raise
        finally:
            entry = self._entries[key]
            if entry.version == version:
                entry.in_flight = None
        self._resolve(key, version, data=data)
        return data

    def _resolve(self, key: QueryKey, version: int, data: Any = None, error: Optional[Exception] = None) -> bool:
        """Apply a fetch outcome if it is still the latest version for ``key``."""
        entry = self._entries[key]
        if version != entry.version:
            logger.debug(f"Discarding stale response for {key} (v{version}, latest v{entry.version})")
            return False

        if error is not None:
            logger.warning(f"Query {key} failed: {error}")
            entry.state = replace(entry.state, status=QueryStatus.ERROR, error=error, is_fetching=False)
        else:
            entry.invalidated = False
            entry.state = QueryState(
                status=QueryStatus.SUCCESS,
                data=data,
                is_fetching=False,
                is_stale=False,
                updated_at=self.clock(),
            )
        self._notify(key)
        return True

    # Writes

    def set_data(self, key: QueryKey, data: Any) -> None:
        self._apply_writes({tuple(key): data})

    def update_data(self, key: QueryKey, updater: Callable[[Any], Any]) -> bool:
        """Replace the data under ``key`` with ``updater(old)``; no-op when nothing is cached."""
        with self.transaction() as txn:
            return txn.update(key, updater)

    @contextmanager
    def transaction(self) -> Iterator[CacheTransaction]:
        with transaction(self) as txn:
            yield txn

    def patch_collection_and_detail(
        self,
        list_key: QueryKey,
        detail_key: QueryKey,
        matches: Callable[[Any], bool],
        patch: Callable[[Any], Any],
    ) -> None:
        """
        Patch one entity everywhere it is cached, in a single step.

        The list under ``list_key`` has its matching items replaced by
        ``patch(item)`` and the detail entry under ``detail_key`` becomes
        ``patch(detail)``. Either entry may be absent.
        """
        with self.transaction() as txn:
            txn.update(list_key, lambda items: [patch(i) if matches(i) else i for i in items])
            txn.update(detail_key, patch)

    def _apply_writes(self, writes: Dict[QueryKey, Any]) -> None:
        """Write every value before notifying anyone."""
        now = self.clock()
        for key, data in writes.items():
            entry = self._entry(key)
            # A write supersedes whatever request is still in flight
            entry.version += 1
            entry.in_flight = None
            entry.invalidated = False
            entry.state = QueryState(
                status=QueryStatus.SUCCESS,
                data=data,
                is_fetching=False,
                is_stale=False,
                updated_at=now,
            )
        for key in writes:
            self._notify(key)

    def invalidate(self, prefix: QueryKey) -> int:
        """Mark every key starting with ``prefix`` as stale. Returns the count."""
        prefix = tuple(prefix)
        count = 0
        for key, entry in self._entries.items():
            if key[:len(prefix)] == prefix:
                entry.invalidated = True
                count += 1
                self._notify(key)
        return count

    def abandon(self, key: QueryKey) -> None:
        """Forget the in-flight request for ``key``; its result will be discarded."""
        entry = self._entries.get(tuple(key))
        if entry is None or entry.in_flight is None:
            return
        entry.version += 1
        entry.in_flight = None
        status = QueryStatus.IDLE if entry.state.status is QueryStatus.LOADING else entry.state.status
        entry.state = replace(entry.state, status=status, is_fetching=False)
        self._notify(tuple(key))

    def clear(self) -> None:
        self._entries.clear()

    # Observers

    def subscribe(self, key: QueryKey, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with the new state whenever ``key`` changes."""
        key = tuple(key)
        self._listeners.setdefault(key, []).append(listener)

        def unsubscribe() -> None:
            listeners = self._listeners.get(key, [])
            if listener in listeners:
                listeners.remove(listener)

        return unsubscribe

    def _notify(self, key: QueryKey) -> None:
        listeners = self._listeners.get(key)
        if not listeners:
            return
        state = self.get_state(key)
        for listener in list(listeners):
            try:
                listener(state)
            except Exception:
                logger.exception(f"Listener for {key} failed")
