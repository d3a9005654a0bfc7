"""In-memory cache of rendered tiles.

Entries live in a bounded LRU map and can disappear at any time when the
entry or byte budget is exceeded, so callers must always be ready to
render again. Concurrent requests for the same key share one computation.
"""
import logging
import threading
from collections import OrderedDict
from concurrent.futures import Future
from typing import Callable, Hashable, Optional

logger = logging.getLogger(__name__)


class TileCache:
    """Thread safe LRU cache with single-flight population.

    Parameters
    ----------
    max_entries : int, optional
        Maximum number of cached tiles. ``None`` means no limit.
    max_bytes : int, optional
        Maximum total size of cached values in bytes. ``None`` means no
        limit. Values larger than the budget are returned but not stored.
    on_evict : callable, optional
        Called as ``on_evict(key, value)`` for every entry dropped to stay
        within the limits or removed with :meth:`discard`. Errors raised by
        the callback are logged and do not reach the caller.
    """

    def __init__(self, max_entries: Optional[int] = None, max_bytes: Optional[int] = None,
                 on_evict: Optional[Callable[[Hashable, bytes], None]] = None):
        if max_entries is not None and max_entries <= 0:
            raise ValueError(f"max_entries must be positive, got {max_entries}")
        if max_bytes is not None and max_bytes <= 0:
            raise ValueError(f"max_bytes must be positive, got {max_bytes}")
        self.max_entries = max_entries
        self.max_bytes = max_bytes
        self.on_evict = on_evict
        self._entries = OrderedDict()
        self._pending = {}
        self._size = 0
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0
        self.evictions = 0

    def __len__(self):
        with self._lock:
            return len(self._entries)

    def __contains__(self, key):
        with self._lock:
            return key in self._entries

    @property
    def size_bytes(self) -> int:
        return self._size

    def _evict_over_budget(self) -> list:
        evicted = []
        while self._entries and (
                (self.max_entries is not None and len(self._entries) > self.max_entries) or
                (self.max_bytes is not None and self._size > self.max_bytes)):
            key, value = self._entries.popitem(last=False)
            self._size -= len(value)
            evicted.append((key, value))
        self.evictions += len(evicted)
        return evicted

    def _notify(self, evicted):
        for key, value in evicted:
            logger.debug(f"Evicted tile {key} from cache")
            if self.on_evict is None:
                continue
            try:
                self.on_evict(key, value)
            except Exception as e:
                logger.warning(f"Eviction callback failed for tile {key}: {e}", exc_info=True)

    def _store(self, key, value) -> list:
        if self.max_bytes is not None and len(value) > self.max_bytes:
            logger.debug(f"Tile {key} is larger than the cache budget, not cached")
            return []
        self._entries[key] = value
        self._size += len(value)
        return self._evict_over_budget()

    def get(self, key: Hashable, compute: Callable[[], bytes]) -> bytes:
        """Return the cached value for ``key``, computing it when missing.

        Only one call to ``compute`` runs at a time for a given key; other
        callers asking for the same key wait for its result. Errors raised
        by ``compute`` reach every waiting caller and nothing is cached.
        """
        with self._lock:
            if key in self._entries:
                self._entries.move_to_end(key)
                self.hits += 1
                return self._entries[key]
            future = self._pending.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._pending[key] = future
                self.misses += 1

        if not owner:
            logger.debug(f"Waiting for tile {key} computed by another caller")
            return future.result()

        try:
            value = compute()
        except BaseException as exc:
            with self._lock:
                del self._pending[key]
            future.set_exception(exc)
            raise

        with self._lock:
            del self._pending[key]
            evicted = self._store(key, value)
        future.set_result(value)
        self._notify(evicted)
        return value

    def discard(self, key: Hashable) -> bool:
        """Drop ``key`` from the cache. Returns whether it was present."""
        with self._lock:
            value = self._entries.pop(key, None)
            if value is None:
                return False
            self._size -= len(value)
        self._notify([(key, value)])
        return True

    def clear(self):
        """Drop every cached entry without calling ``on_evict``."""
        with self._lock:
            self._entries.clear()
            self._size = 0

    def stats(self) -> dict:
        """Return cache statistics."""
        with self._lock:
            total = self.hits + self.misses
            return {
                "size": len(self._entries),
                "bytes": self._size,
                "max_entries": self.max_entries,
                "max_bytes": self.max_bytes,
                "hits": self.hits,
                "misses": self.misses,
                "evictions": self.evictions,
                "hit_rate": (self.hits / total * 100) if total > 0 else 0,
            }
