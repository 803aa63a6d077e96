"""Storage adapters for caching"""

from .base import StorageAdapter
from .memory import MemoryStorage

__all__ = ["MemoryStorage", "StorageAdapter", "get_storage_adapter"]

_shared_storage = None


def get_storage_adapter() -> MemoryStorage:
    """Process-wide cache shared by every fetcher"""
    global _shared_storage
    if _shared_storage is None:
        _shared_storage = MemoryStorage()
    return _shared_storage
