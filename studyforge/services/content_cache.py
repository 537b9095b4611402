"""
Process-local TTL cache for generated study content.

Entries are keyed by the semantic request parameters, so identical quiz or
flashcard requests from different users share one generation.
"""
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Optional

from studyforge.core.config import CACHE_TTL_MINUTES, CACHE_MAX_ENTRIES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheKey:
    """Cache entries are keyed by the field tuple itself, never by the label."""

    type: str  # quiz | flashcard
    subject: str
    grade: str
    difficulty: str
    count: int

    def serialize(self) -> str:
        """Readable label for logs. Not unique: subject and grade are free text."""
        return f"{self.type}:{self.subject}:{self.grade}:{self.difficulty}:{self.count}"


@dataclass
class CachedContent:
    data: Any
    timestamp: float


class ContentCache:
    """TTL cache with lazy eviction and an LRU size bound."""

    def __init__(
        self,
        ttl_seconds: float = CACHE_TTL_MINUTES * 60,
        max_entries: int = CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, CachedContent]" = OrderedDict()
        self._lock = threading.Lock()

    def _is_valid(self, entry: CachedContent) -> bool:
        return self._clock() - entry.timestamp < self.ttl_seconds

    def get(self, key: CacheKey) -> Optional[Any]:
        """Return cached data, or None if absent or expired (expired entries are dropped)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            if not self._is_valid(entry):
                del self._entries[key]
                logger.debug(f"Cache EXPIRED: {key.serialize()}")
                return None

            self._entries.move_to_end(key)
            logger.info(f"Cache HIT: {key.serialize()}")
            return entry.data

    def set(self, key: CacheKey, data: Any) -> None:
        """Store data under key, replacing any existing entry."""
        with self._lock:
            self._entries[key] = CachedContent(data=data, timestamp=self._clock())
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                logger.debug(f"Cache EVICT (size bound): {evicted.serialize()}")
        logger.info(f"Cache SET: {key.serialize()}")

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: CacheKey) -> bool:
        return key in self._entries
