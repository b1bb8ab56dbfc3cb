from abc import ABC, abstractmethod
from typing import Any, Optional


class CacheInterface(ABC):
    """Key/value cache holding JSON-serialisable values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on a miss."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store a value, optionally expiring after ``ttl`` seconds."""

    @abstractmethod
    async def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob such as ``plans:*``."""
