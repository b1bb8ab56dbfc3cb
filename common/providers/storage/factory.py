from typing import Optional

from .interface import StorageInterface
from .s3 import S3Storage

_storage: Optional[StorageInterface] = None


def get_storage() -> StorageInterface:
    """Process-wide storage client. Also used as a FastAPI dependency."""
    global _storage
    if _storage is None:
        _storage = S3Storage()
    return _storage
