from abc import ABC, abstractmethod
from typing import Optional


class StorageInterface(ABC):
    """Object storage used for uploaded files."""

    @abstractmethod
    async def upload(
        self, bucket: str, key: str, data: bytes, content_type: Optional[str] = None
    ) -> bool:
        pass

    @abstractmethod
    async def delete(self, bucket: str, key: str) -> bool:
        pass

    @abstractmethod
    async def issue_signed_url(self, bucket: str, key: str, ttl: int) -> Optional[str]:
        """
        Time-limited GET URL for an object.

        Returns None when the URL cannot be issued.
        """
        pass
