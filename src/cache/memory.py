"""In-process cache backed by cachetools."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, NamedTuple

from cachetools import TLRUCache

from src.cache.base import JiraCache

logger = logging.getLogger(__name__)


class _Entry(NamedTuple):
    value: Any
    ttl: float


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl


class MemoryJiraCache(JiraCache):
    """Per-key TTL cache living in this process.

    Expired entries are never returned. Every ``check_period`` seconds of the
    timer, a read or write also sweeps expired entries out of memory.
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        check_period: int = 30,
        maxsize: int = 10000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(default_ttl)
        self._timer = timer
        self._check_period = check_period
        self._last_sweep = timer()
        self._cache: TLRUCache[str, _Entry] = TLRUCache(
            maxsize=maxsize, ttu=_time_to_use, timer=timer
        )

    def _maybe_sweep(self) -> None:
        now = self._timer()
        if now - self._last_sweep < self._check_period:
            return
        expired = self._cache.expire()
        self._last_sweep = now
        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))

    def __len__(self) -> int:
        return len(self._cache)

    async def get(self, key: str) -> Any | None:
        self._maybe_sweep()
        entry = self._cache.get(key)
        return None if entry is None else entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        self._maybe_sweep()
        self._cache[key] = _Entry(value, self.default_ttl if ttl is None else ttl)

    async def delete(self, key: str) -> None:
        self._cache.pop(key, None)

    async def flush_all(self) -> None:
        self._cache.clear()
