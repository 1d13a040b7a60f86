"""Decision cache for CreatorHub RBAC.

Process-local, short-TTL memoization of computed verdicts. Entries are
keyed "subject:resource:action:instance" so that a subject's entries can
be invalidated by prefix. Expiry is checked lazily on read; sweep() can
be called periodically to reclaim memory. Nothing is persisted, so a
fresh process always recomputes.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from creatorhub.common.logger import get_logger

logger = get_logger(__name__)

DEFAULT_TTL = 300  # 5 minutes


@dataclass(frozen=True)
class CacheEntry:
    """A cached verdict."""
    key: str
    verdict: bool
    written_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return now - self.written_at >= self.ttl


class DecisionCache:
    """
    Thread-safe TTL cache of authorization verdicts.

    Concurrent writes to one key are last-write-wins; verdicts for a key
    are deterministic so no update is lost. The lock is only held for
    dictionary operations.
    """

    def __init__(
        self,
        default_ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache.

        Args:
            default_ttl: Seconds a verdict stays valid
            clock: Monotonic time source, replaceable in tests
        """
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @staticmethod
    def make_key(
        subject_id: str,
        resource: str,
        action: str,
        resource_instance_id: Optional[str] = None,
    ) -> str:
        """Build the cache key for a check."""
        return f"{subject_id}:{resource}:{action}:{resource_instance_id or 'all'}"

    def get(self, key: str) -> Optional[bool]:
        """Return the cached verdict, or None on miss or expiry."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug("Decision cache entry expired: %s", key)
                return None
            return entry.verdict

    def put(self, key: str, verdict: bool, ttl: Optional[float] = None) -> None:
        """Store a verdict."""
        entry = CacheEntry(
            key=key,
            verdict=bool(verdict),
            written_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def invalidate_by_subject(self, subject_id: str) -> int:
        """
        Remove every entry belonging to a subject.

        Only keys prefixed "<subject_id>:" are removed.

        Returns:
            Number of entries removed
        """
        prefix = f"{subject_id}:"
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        logger.debug("Invalidated %d cached decisions for %s", len(doomed), subject_id)
        return len(doomed)

    def invalidate_all(self) -> int:
        """Flush the whole cache, returning the number of entries removed."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.debug("Flushed %d cached decisions", count)
        return count

    def sweep(self) -> int:
        """Drop expired entries, returning how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if e.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def keys(self) -> List[str]:
        with self._lock:
            return list(self._entries.keys())

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
