import fnmatch
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .interface import CacheInterface
from common.core.otel_axiom_exporter import get_logger

logger = get_logger(__name__)


@dataclass
class CacheEntry:
    value: Any
    expires_at: Optional[float] = None

    def is_expired(self) -> bool:
        return self.expires_at is not None and time.time() > self.expires_at


class MemoryCache(CacheInterface):
    """Process-local cache. Used in tests and single-process local runs."""

    def __init__(self):
        self._entries: Dict[str, CacheEntry] = {}
        logger.info("Memory cache provider initialized")

    async def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.is_expired():
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        expires_at = time.time() + ttl if ttl else None
        self._entries[key] = CacheEntry(value=value, expires_at=expires_at)
        logger.debug(f"Cached key {key} with TTL {ttl}")
        return True

    async def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

    async def delete_pattern(self, pattern: str) -> int:
        matching = [key for key in self._entries if fnmatch.fnmatch(key, pattern)]
        for key in matching:
            del self._entries[key]
        logger.info(f"Deleted {len(matching)} cache keys matching pattern {pattern}")
        return len(matching)
