"""
In-process tagged cache

Entries expire after their TTL and can be dropped early by tag. Writers call
`invalidate_tag` after a successful mutation so the next read recomputes.

Each tag carries a generation counter that `invalidate_tag` bumps. A value
computed by `get_or_set` is only stored when none of its tags moved while the
loader ran, so a read racing a mutation cannot re-cache the old rows.
"""

from dataclasses import dataclass, field
from threading import RLock
from typing import Any, Callable, Dict, Hashable, Iterable, Optional, Set
import time
import structlog

logger = structlog.get_logger(__name__)

PUBLIC_MENU_TAG = "public-menu"
SHOP_STATUS_TAG = "shop-status"

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    expires_at: float
    tags: Set[str] = field(default_factory=set)


class TaggedCache:
    """Thread-safe TTL cache with tag-based invalidation"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[Hashable, CacheEntry] = {}
        self._tag_index: Dict[str, Set[Hashable]] = {}
        self._generations: Dict[str, int] = {}
        self._lock = RLock()

    def get(self, key: Hashable, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.expires_at <= self._clock():
                self._drop(key)
                return default
            return entry.value

    def generations(self, tags: Iterable[str]) -> Dict[str, int]:
        """Current generation of each tag"""
        with self._lock:
            return {tag: self._generations.get(tag, 0) for tag in tags}

    def set(
        self,
        key: Hashable,
        value: Any,
        ttl_seconds: float,
        tags: Iterable[str] = (),
        generations: Optional[Dict[str, int]] = None
    ) -> bool:
        """Store value; with `generations`, skip the store if any tag was invalidated since"""
        tags = set(tags)
        with self._lock:
            if generations is not None and any(
                self._generations.get(tag, 0) != generations.get(tag, 0) for tag in tags
            ):
                logger.debug(f"Skipped caching {key}: tag invalidated during load")
                return False
            self._drop(key)
            entry = CacheEntry(value=value, expires_at=self._clock() + ttl_seconds, tags=tags)
            self._entries[key] = entry
            for tag in entry.tags:
                self._tag_index.setdefault(tag, set()).add(key)
            return True

    def get_or_set(
        self,
        key: Hashable,
        loader: Callable[[], Any],
        ttl_seconds: float,
        tags: Iterable[str] = ()
    ) -> Any:
        """Return the cached value, computing and storing it on a miss"""
        value = self.get(key, _MISSING)
        if value is not _MISSING:
            return value
        tags = set(tags)
        generations = self.generations(tags)
        value = loader()
        self.set(key, value, ttl_seconds, tags, generations=generations)
        return value

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry carrying tag; returns the number removed"""
        with self._lock:
            self._generations[tag] = self._generations.get(tag, 0) + 1
            keys = self._tag_index.pop(tag, set())
            for key in list(keys):
                self._drop(key)
        if keys:
            logger.info(f"Invalidated {len(keys)} cache entries for tag {tag}")
        return len(keys)

    def clear(self):
        with self._lock:
            self._entries.clear()
            self._tag_index.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def _drop(self, key: Hashable):
        entry: Optional[CacheEntry] = self._entries.pop(key, None)
        if entry is None:
            return
        for tag in entry.tags:
            keys = self._tag_index.get(tag)
            if keys is not None:
                keys.discard(key)
                if not keys:
                    del self._tag_index[tag]
