"""Bounded in-memory LRU cache.

The cache keeps three structures in step:

- an index (``dict``) from key to node for O(1) lookup,
- a doubly linked recency list, head = most recently used,
  tail = least recently used,
- an eviction policy that grows the list until ``capacity`` and afterwards
  recycles the tail node for every newly admitted key.

Locking
-------
Two kinds of ``threading.Lock`` are used:

- one structural lock per cache, guarding ``head``, ``tail``, the node
  links, the index membership, the live count and the statistics counters;
- one lock per node, guarding that node's ``key``/``value`` pair.

Acquisition order is structural lock first, node lock second. A node lock is
never held while waiting for the structural lock. Neither lock is reentrant,
so internal helpers prefixed with ``_`` expect the caller to hold the
structural lock already.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from collections.abc import Hashable
from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Generic, List, Optional, Tuple, TypeVar

from .config.models import DEFAULT_SWEEP_INTERVAL_SECONDS, CacheConfig
from .sweep import IdleSweeper

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class _Node:
    """One cache entry plus its position in the recency list."""

    __slots__ = ("key", "value", "last_accessed", "next", "previous", "lock")

    def __init__(self, key: Any, value: Any, last_accessed: float) -> None:
        self.key = key
        self.value = value
        self.last_accessed = last_accessed
        self.next: Optional[_Node] = None
        self.previous: Optional[_Node] = None
        self.lock = threading.Lock()


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time counters for a cache.

    Attributes
    ----------
    hits : int
        Lookups that found their key.
    misses : int
        Lookups that did not.
    evictions : int
        Entries dropped to admit a new key into a full cache.
    expirations : int
        Entries dropped by the idle sweep.
    count : int
        Live entries when the snapshot was taken.
    capacity : int
        Maximum number of live entries.
    """

    hits: int
    misses: int
    evictions: int
    expirations: int
    count: int
    capacity: int

    @property
    def hit_ratio(self) -> float:
        """Fraction of lookups that were hits (0.0 when nothing was looked up)."""
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["hit_ratio"] = self.hit_ratio
        return data


class Cache(Generic[K, V]):
    """Fixed-capacity, thread-safe LRU cache with O(1) lookup and insert.

    Parameters
    ----------
    capacity : int
        Maximum number of entries. Must be a positive integer.
    ttl : float, optional
        Idle threshold in seconds. When set to a positive value, entries not
        read or written for longer than ``ttl`` are dropped by the idle sweep.
        ``None`` or ``0`` disables the sweep.
    sweep_interval : float
        Seconds between two background sweeps. Defaults to 6 seconds.
    start_sweeper : bool
        Start the background sweeper thread when a TTL is configured. Pass
        ``False`` to drive :meth:`purge_idle` manually.
    clock : callable
        Returns the current time in seconds. Defaults to ``time.monotonic``.

    Raises
    ------
    ValueError
        If ``capacity`` is not a positive integer, ``ttl`` is negative, or
        ``sweep_interval`` is not positive.
    """

    def __init__(
        self,
        capacity: int,
        ttl: Optional[float] = None,
        *,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        start_sweeper: bool = True,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ValueError(f"capacity must be a positive integer, got {capacity!r}")
        if capacity <= 0:
            raise ValueError(f"capacity must be a positive integer, got {capacity}")
        if ttl is not None and ttl < 0:
            raise ValueError(f"ttl must be non-negative, got {ttl}")
        if sweep_interval <= 0:
            raise ValueError(f"sweep_interval must be positive, got {sweep_interval}")

        self._capacity = capacity
        self._ttl: Optional[float] = ttl if ttl else None
        self._clock = clock
        self._index: Dict[K, _Node] = {}
        self._head: Optional[_Node] = None
        self._tail: Optional[_Node] = None
        self._count = 0
        self._lock = threading.Lock()

        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

        self._sweeper: Optional[IdleSweeper] = None
        self._finalizer: Optional[weakref.finalize] = None
        if self._ttl is not None and start_sweeper:
            # The sweeper holds purge_idle weakly; collection stops the thread.
            self._sweeper = IdleSweeper(
                self.purge_idle,
                interval=sweep_interval,
                initial_delay=self._ttl,
            )
            self._finalizer = weakref.finalize(self, self._sweeper.stop)
            self._sweeper.start()

        logger.debug(
            "cache.created",
            extra={
                "capacity": capacity,
                "ttl_seconds": self._ttl,
                "sweeper": self._sweeper is not None,
            },
        )

    @classmethod
    def from_config(cls, config: CacheConfig, **kwargs: Any) -> "Cache[K, V]":
        """Build a cache from a validated :class:`CacheConfig`."""
        return cls(
            config.capacity,
            config.ttl_seconds,
            sweep_interval=config.sweep_interval_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Read-only accessors

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def count(self) -> int:
        return self._count

    @property
    def is_full(self) -> bool:
        """True iff the cache holds ``capacity`` entries."""
        return self._count == self._capacity

    @property
    def ttl(self) -> Optional[float]:
        return self._ttl

    # ------------------------------------------------------------------
    # Public operations

    def try_get_value(self, key: K) -> Tuple[bool, Optional[V]]:
        """Look up ``key`` and mark it as most recently used.

        Returns
        -------
        tuple
            ``(True, value)`` when the key is cached, ``(False, None)``
            otherwise. A miss is a normal outcome and never raises.
        """
        if key not in self._index:
            with self._lock:
                self._misses += 1
            return False, None

        with self._lock:
            # Re-check: the entry may have been evicted or recycled since.
            node = self._index.get(key)
            if node is None:
                self._misses += 1
                return False, None
            self._move_to_head(node)
            node.last_accessed = self._clock()
            self._hits += 1
            with node.lock:
                return True, node.value

    def add_or_update(self, key: K, value: V) -> None:
        """Insert ``value`` under ``key`` or replace the current value.

        Either way the entry becomes the most recently used. Admitting a new
        key into a full cache recycles the least recently used entry.
        """
        node = self._index.get(key)
        if node is not None:
            # Fast path: only the node lock is needed for the value itself.
            with node.lock:
                updated = node.key == key
                if updated:
                    node.value = value
            if updated:
                with self._lock:
                    if self._index.get(key) is node:
                        node.last_accessed = self._clock()
                        self._move_to_head(node)
                        return
            # The node was recycled or swept in between; insert afresh.

        with self._lock:
            evicted_key = self._insert(key, value)

        if evicted_key is not _MISSING:
            logger.debug(
                "cache.evicted",
                extra={"evicted_key": repr(evicted_key), "admitted_key": repr(key)},
            )

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        """Return the cached value for ``key`` or ``default``."""
        found, value = self.try_get_value(key)
        return value if found else default

    def purge_idle(self) -> int:
        """Drop idle entries from the tail end of the recency list.

        Walks from the least recently used entry toward the head and evicts
        every entry idle for longer than ``ttl``, stopping at the first entry
        that is still fresh.

        Returns
        -------
        int
            Number of entries expired. Always 0 when no TTL is configured.
        """
        if self._ttl is None or self._count == 0:
            return 0

        expired = 0
        with self._lock:
            now = self._clock()
            node = self._tail
            while node is not None and now - node.last_accessed > self._ttl:
                previous = node.previous
                self._remove(node)
                expired += 1
                node = previous
            self._expirations += expired
            remaining = self._count

        if expired:
            logger.debug(
                "cache.expired",
                extra={"expired": expired, "remaining": remaining},
            )
        return expired

    def keys(self) -> List[K]:
        """Snapshot of the cached keys, most recently used first."""
        with self._lock:
            result = []
            node = self._head
            while node is not None:
                result.append(node.key)
                node = node.next
            return result

    def clear(self) -> None:
        """Drop every entry. Statistics counters are kept."""
        with self._lock:
            node = self._head
            while node is not None:
                following = node.next
                node.next = None
                node.previous = None
                node = following
            self._index.clear()
            self._head = None
            self._tail = None
            self._count = 0

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
                count=self._count,
                capacity=self._capacity,
            )

    def close(self) -> None:
        """Stop the background sweeper, if one is running."""
        if self._finalizer is not None:
            self._finalizer()
            self._finalizer = None
        self._sweeper = None

    def __enter__(self) -> "Cache[K, V]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __len__(self) -> int:
        return self._count

    def __contains__(self, key: object) -> bool:
        # Membership test only; does not count as a use.
        return key in self._index

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(capacity={self._capacity}, "
            f"count={self._count}, ttl={self._ttl})"
        )

    # ------------------------------------------------------------------
    # Structural helpers; caller holds self._lock

    def _insert(self, key: K, value: V) -> Any:
        """Insert or update under the structural lock.

        Returns the key that was evicted to make room, or ``_MISSING``.
        """
        now = self._clock()
        evicted_key: Any = _MISSING

        node = self._index.get(key)
        if node is not None:
            # Another caller admitted the same key first.
            with node.lock:
                node.value = value
        elif self._count == self._capacity:
            node = self._tail
            evicted_key = node.key
            del self._index[evicted_key]
            with node.lock:
                node.key = key
                node.value = value
            self._index[key] = node
            self._evictions += 1
        else:
            node = _Node(key, value, now)
            self._index[key] = node
            self._count += 1

        node.last_accessed = now
        self._move_to_head(node)
        return evicted_key

    def _move_to_head(self, node: _Node) -> None:
        if node is self._head:
            return
        self._unlink(node)
        self._push_head(node)

    def _push_head(self, node: _Node) -> None:
        node.previous = None
        node.next = self._head
        if self._head is not None:
            self._head.previous = node
        self._head = node
        if self._tail is None:
            self._tail = node

    def _unlink(self, node: _Node) -> None:
        following = node.next
        previous = node.previous

        if following is not None:
            following.previous = previous
        if previous is not None:
            previous.next = following

        if self._head is node:
            self._head = following
        if self._tail is node:
            self._tail = previous

        node.next = None
        node.previous = None

    def _remove(self, node: _Node) -> None:
        self._unlink(node)
        del self._index[node.key]
        self._count -= 1
