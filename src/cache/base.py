"""Cache contract shared by the in-process and Redis backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class JiraCache(ABC):
    """Time-to-live key/value cache.

    Values must be JSON-serialisable so any backend can hold them. A read of an
    absent or expired key returns ``None`` and never raises.
    """

    def __init__(self, default_ttl: int = 3600) -> None:
        self.default_ttl = default_ttl

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value`` under ``key``, overwriting and resetting its expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def flush_all(self) -> None:
        ...
