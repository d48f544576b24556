"""Shared cache backend on Redis."""

from __future__ import annotations

import json
import logging
from typing import Any

import redis.asyncio as redis

from src.cache.base import JiraCache

logger = logging.getLogger(__name__)

_KEY_PREFIX = "jira-notifier:"


class RedisJiraCache(JiraCache):
    """Cache shared between processes; values are stored as JSON strings."""

    def __init__(
        self,
        client: redis.Redis | None = None,
        url: str = "redis://localhost:6379/0",
        default_ttl: int = 3600,
    ) -> None:
        super().__init__(default_ttl)
        self._client = client or redis.from_url(url, decode_responses=True)

    async def get(self, key: str) -> Any | None:
        raw = await self._client.get(_KEY_PREFIX + key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Dropping undecodable cache entry %s", key)
            await self._client.delete(_KEY_PREFIX + key)
            return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        expiry = self.default_ttl if ttl is None else ttl
        await self._client.set(_KEY_PREFIX + key, json.dumps(value, default=str), ex=max(int(expiry), 1))

    async def delete(self, key: str) -> None:
        await self._client.delete(_KEY_PREFIX + key)

    async def flush_all(self) -> None:
        # Only our own namespace; the database may be shared.
        keys = [k async for k in self._client.scan_iter(match=_KEY_PREFIX + "*")]
        if keys:
            await self._client.delete(*keys)

    async def close(self) -> None:
        await self._client.aclose()
