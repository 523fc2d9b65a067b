import asyncio
import logging
import time
from collections import OrderedDict
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Hashable, Optional, Set

from app.config import CacheSettings, settings
from app.exceptions import InvalidKeyError
from app.models.cache import CacheStats

logger = logging.getLogger(__name__)

Loader = Callable[[Any], Awaitable[Any]]


class EntryState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class CacheEntry:
    def __init__(self, key: Hashable):
        self.key = key
        self.state = EntryState.PENDING
        self.value: Any = None
        self.error: Optional[BaseException] = None
        self.task: Optional[asyncio.Task] = None
        self.waiters: Set[asyncio.Task] = set()
        self.settled_at: Optional[float] = None
        # set by invalidate() while pending: drop the entry once it settles
        self.invalidated = False


class AsyncMemoizingCache:
    """
    Memoizes the results of an asynchronous lookup by key.

    Concurrent misses for the same key are coalesced into a single loader
    call and every caller observes the same value or the same exception.
    Failed lookups are dropped after the waiters are released, unless
    `cache_failures` is enabled.

    The entry maps are only touched from the event loop and never across an
    await, so they need no lock and unrelated keys never wait on each other.
    """

    def __init__(
        self,
        max_entries: Optional[int] = None,
        ttl: Optional[float] = None,
        cache_failures: bool = False,
        cancel_abandoned_loads: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        if ttl is not None and ttl <= 0:
            raise ValueError("ttl must be positive")
        self._max_entries = max_entries
        self._ttl = ttl
        self._cache_failures = cache_failures
        self._cancel_abandoned_loads = cancel_abandoned_loads
        self._clock = clock
        # a key lives in at most one of the two maps
        self._pending: Dict[Hashable, CacheEntry] = {}
        self._resolved: "OrderedDict[Hashable, CacheEntry]" = OrderedDict()
        self._hits = 0
        self._misses = 0
        self._coalesced = 0
        self._failures = 0
        self._evictions = 0
        self._expirations = 0

    @classmethod
    def from_settings(cls, cache_settings: CacheSettings, **kwargs) -> "AsyncMemoizingCache":
        return cls(
            max_entries=cache_settings.max_entries,
            ttl=cache_settings.ttl,
            cache_failures=cache_settings.cache_failures,
            cancel_abandoned_loads=cache_settings.cancel_abandoned_loads,
            **kwargs,
        )

    async def get(self, key: Hashable, loader: Loader) -> Any:
        """
        Returns the cached value for `key`, loading it with `loader(key)` on
        a miss. Raises whatever the loader raised, unchanged.
        """
        self._check_key(key)
        entry = self._resolved.get(key)
        if entry is not None and self._is_expired(entry):
            del self._resolved[key]
            self._expirations += 1
            entry = None

        if entry is not None:
            self._hits += 1
            self._resolved.move_to_end(key)
            if entry.state is EntryState.FAILED:
                # fresh traceback per replay, the stored one would keep growing
                raise entry.error.with_traceback(None)
            return entry.value

        entry = self._pending.get(key)
        if entry is None:
            self._misses += 1
            entry = self._start_load(key, loader)
        else:
            self._coalesced += 1
            logger.debug(f"Joining in-flight lookup for {key!r}")

        return await self._wait(entry)

    def invalidate(self, key: Hashable) -> bool:
        """
        Drops the entry for `key`. A pending entry keeps serving its current
        waiters and is dropped once it settles. Returns False if the key
        was absent.
        """
        self._check_key(key)
        if self._resolved.pop(key, None) is not None:
            return True
        entry = self._pending.get(key)
        if entry is None:
            return False
        entry.invalidated = True
        return True

    def invalidate_where(self, predicate: Callable[[Hashable], bool]) -> int:
        """Invalidates every key matching `predicate`; returns how many."""
        resolved = [key for key in self._resolved if predicate(key)]
        for key in resolved:
            del self._resolved[key]
        pending = [entry for key, entry in self._pending.items() if predicate(key)]
        for entry in pending:
            entry.invalidated = True
        return len(resolved) + len(pending)

    def clear(self) -> int:
        """Removes all resolved entries. In-flight lookups are left alone."""
        removed = len(self._resolved)
        self._resolved.clear()
        return removed

    def purge_expired(self) -> int:
        """Removes resolved entries whose TTL has elapsed."""
        if self._ttl is None:
            return 0
        expired = [key for key, entry in self._resolved.items() if self._is_expired(entry)]
        for key in expired:
            del self._resolved[key]
        self._expirations += len(expired)
        return len(expired)

    def state(self, key: Hashable) -> Optional[EntryState]:
        entry = self._resolved.get(key) or self._pending.get(key)
        return entry.state if entry is not None else None

    def stats(self) -> CacheStats:
        return CacheStats(
            size=len(self._resolved),
            pending=len(self._pending),
            hits=self._hits,
            misses=self._misses,
            coalesced=self._coalesced,
            failures=self._failures,
            evictions=self._evictions,
            expirations=self._expirations,
            max_entries=self._max_entries,
            ttl=self._ttl,
        )

    def __contains__(self, key: Hashable) -> bool:
        return key in self._resolved or key in self._pending

    def __len__(self) -> int:
        return len(self._resolved) + len(self._pending)

    @staticmethod
    def _check_key(key: Hashable):
        if key is None:
            raise InvalidKeyError(key)
        try:
            hash(key)
        except TypeError as e:
            raise InvalidKeyError(key) from e

    def _is_expired(self, entry: CacheEntry) -> bool:
        if self._ttl is None or entry.settled_at is None:
            return False
        return self._clock() - entry.settled_at >= self._ttl

    def _start_load(self, key: Hashable, loader: Loader) -> CacheEntry:
        async def load():
            return await loader(key)

        logger.debug(f"Loading {key!r}")
        entry = CacheEntry(key)
        self._pending[key] = entry
        entry.task = asyncio.create_task(load())
        entry.task.add_done_callback(lambda task: self._settle(entry, task))
        return entry

    async def _wait(self, entry: CacheEntry) -> Any:
        waiter = asyncio.current_task()
        entry.waiters.add(waiter)
        try:
            # shield: a cancelled caller must not cancel the shared load
            return await asyncio.shield(entry.task)
        finally:
            entry.waiters.discard(waiter)
            if not entry.waiters and not entry.task.done() and self._cancel_abandoned_loads:
                logger.info(f"All callers for {entry.key!r} went away, cancelling the lookup")
                self._release(entry)
                entry.task.cancel()

    def _settle(self, entry: CacheEntry, task: asyncio.Task):
        # False when the load was abandoned and the key already released
        owned = self._release(entry)
        entry.settled_at = self._clock()
        if task.cancelled():
            entry.state = EntryState.FAILED
            entry.error = asyncio.CancelledError()
            return

        error = task.exception()
        if error is not None:
            entry.state = EntryState.FAILED
            entry.error = error
            note = f"while loading cache key {entry.key!r}"
            if note not in getattr(error, "__notes__", []):
                error.add_note(note)
            self._failures += 1
            logger.warning(f"Lookup for {entry.key!r} failed: {error!r}")
            if not self._cache_failures:
                return
        else:
            entry.state = EntryState.READY
            entry.value = task.result()

        if owned and not entry.invalidated:
            self._resolved[entry.key] = entry
            self._evict_overflow()

    def _release(self, entry: CacheEntry) -> bool:
        # a newer load may already own the key
        if self._pending.get(entry.key) is entry:
            del self._pending[entry.key]
            return True
        return False

    def _evict_overflow(self):
        if self._max_entries is None:
            return
        while len(self._resolved) > self._max_entries:
            key, _ = self._resolved.popitem(last=False)
            logger.debug(f"Evicting least recently used entry {key!r}")
            self._evictions += 1


cache = AsyncMemoizingCache.from_settings(settings.cache)
