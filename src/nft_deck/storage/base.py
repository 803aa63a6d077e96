"""Base storage adapter"""

from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")


class StorageAdapter(ABC):
    """Base storage adapter interface"""

    @abstractmethod
    async def get_cache(self, key: str) -> Optional[Any]:
        """Get cached value"""
        pass

    @abstractmethod
    async def set_cache(self, key: str, value: Any, ttl: float) -> None:
        """Set cached value with TTL (seconds)"""
        pass

    @abstractmethod
    async def delete_cache(self, key: str) -> None:
        """Delete cached value"""
        pass

    @abstractmethod
    async def get_or_set(self, key: str, ttl: float, loader: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, or load, store and return it"""
        pass
