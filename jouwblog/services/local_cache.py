"""
Bounded, expiring in-process cache.

Entries are kept in least-recently-used order. Expiry is either measured from
the last read or write (``expire_after_access``) or from the last write only
(``expire_after_write``). Expired entries are dropped lazily on access and by
``cleanup()``, which every write runs. A removal listener is told about every
entry that leaves the cache together with the reason.
"""

from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple
import logging
import threading
import time

logger = logging.getLogger(__name__)


class RemovalCause(Enum):
    EXPLICIT = 'explicit'
    REPLACED = 'replaced'
    EXPIRED = 'expired'
    SIZE = 'size'

    @property
    def was_evicted(self) -> bool:
        return self in (RemovalCause.EXPIRED, RemovalCause.SIZE)


RemovalListener = Callable[[Hashable, Any, RemovalCause], None]


class LocalCache:
    def __init__(
        self,
        name: str,
        max_size: int,
        expire_after_access: Optional[float] = None,
        expire_after_write: Optional[float] = None,
        removal_listener: Optional[RemovalListener] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_size <= 0:
            raise ValueError("max_size must be positive")
        if expire_after_access is not None and expire_after_write is not None:
            raise ValueError("Use either expire_after_access or expire_after_write, not both")

        self.name = name
        self.max_size = max_size
        self.ttl = expire_after_access if expire_after_access is not None else expire_after_write
        self.refresh_on_read = expire_after_access is not None
        self.removal_listener = removal_listener
        self.clock = clock

        # key -> (value, expires_at)
        self._entries: 'OrderedDict[Hashable, Tuple[Any, Optional[float]]]' = OrderedDict()
        self._lock = threading.RLock()
        self._stats = {'hits': 0, 'misses': 0, 'evictions': 0}

    def _deadline(self) -> Optional[float]:
        if self.ttl is None:
            return None
        return self.clock() + self.ttl

    def _is_expired(self, expires_at: Optional[float], now: float) -> bool:
        return expires_at is not None and now >= expires_at

    def _notify(self, removed: List[Tuple[Hashable, Any, RemovalCause]]):
        if not self.removal_listener:
            return
        for key, value, cause in removed:
            try:
                self.removal_listener(key, value, cause)
            except Exception as e:
                logger.error(f"Removal listener of cache {self.name} failed for {key}: {e}")

    def _lookup(self, key: Hashable, removed: list) -> Tuple[bool, Any]:
        entry = self._entries.get(key)
        if entry is None:
            return False, None

        value, expires_at = entry
        if self._is_expired(expires_at, self.clock()):
            del self._entries[key]
            self._stats['evictions'] += 1
            removed.append((key, value, RemovalCause.EXPIRED))
            return False, None

        self._entries.move_to_end(key)
        if self.refresh_on_read:
            self._entries[key] = (value, self._deadline())
        return True, value

    def get_if_present(self, key: Hashable) -> Optional[Any]:
        removed = []
        with self._lock:
            found, value = self._lookup(key, removed)
            self._stats['hits' if found else 'misses'] += 1
        self._notify(removed)
        return value

    def get(self, key: Hashable, loader: Callable[[Hashable], Any]) -> Any:
        """Return the cached value, computing and storing it with ``loader`` on a miss."""
        removed = []
        with self._lock:
            found, value = self._lookup(key, removed)
            if found:
                self._stats['hits'] += 1
            else:
                self._stats['misses'] += 1
                value = loader(key)
                if value is not None:
                    self._store(key, value, removed)
        self._notify(removed)
        return value

    def _store(self, key: Hashable, value: Any, removed: list):
        previous = self._entries.pop(key, None)
        if previous is not None and previous[0] is not value:
            removed.append((key, previous[0], RemovalCause.REPLACED))

        self._entries[key] = (value, self._deadline())
        self._expire(removed)

        while len(self._entries) > self.max_size:
            old_key, (old_value, _) = self._entries.popitem(last=False)
            self._stats['evictions'] += 1
            removed.append((old_key, old_value, RemovalCause.SIZE))

    def _expire(self, removed: list):
        if self.ttl is None:
            return
        now = self.clock()
        expired = [k for k, (_, expires_at) in self._entries.items() if self._is_expired(expires_at, now)]
        for key in expired:
            value, _ = self._entries.pop(key)
            self._stats['evictions'] += 1
            removed.append((key, value, RemovalCause.EXPIRED))

    def put(self, key: Hashable, value: Any):
        if value is None:
            raise ValueError("LocalCache does not store None")
        removed = []
        with self._lock:
            self._store(key, value, removed)
        self._notify(removed)

    def invalidate(self, key: Hashable) -> Optional[Any]:
        removed = []
        with self._lock:
            entry = self._entries.pop(key, None)
            if entry is not None:
                removed.append((key, entry[0], RemovalCause.EXPLICIT))
        self._notify(removed)
        return entry[0] if entry is not None else None

    def invalidate_all(self):
        with self._lock:
            removed = [(k, v, RemovalCause.EXPLICIT) for k, (v, _) in self._entries.items()]
            self._entries.clear()
        self._notify(removed)

    def cleanup(self):
        removed = []
        with self._lock:
            self._expire(removed)
        self._notify(removed)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                'name': self.name,
                'size': len(self._entries),
                'max_size': self.max_size,
                'ttl_seconds': self.ttl,
                **self._stats
            }

    def __len__(self):
        with self._lock:
            return len(self._entries)
