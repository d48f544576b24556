"""Process-wide cache selection and invalidation helpers."""

from __future__ import annotations

import logging

from src.cache.base import JiraCache
from src.cache.memory import MemoryJiraCache
from src.cache.redis_cache import RedisJiraCache
from src.config import Settings, settings

logger = logging.getLogger(__name__)

_cache: JiraCache | None = None


def build_cache(config: Settings) -> JiraCache:
    if config.cache_backend == "redis":
        logger.info("Using Redis cache at %s", config.redis_url)
        return RedisJiraCache(url=config.redis_url, default_ttl=config.cache_default_ttl)
    return MemoryJiraCache(
        default_ttl=config.cache_default_ttl,
        check_period=config.cache_check_period,
        maxsize=config.cache_max_entries,
    )


def get_cache() -> JiraCache:
    global _cache
    if _cache is None:
        _cache = build_cache(settings)
    return _cache


async def close_cache() -> None:
    global _cache
    if isinstance(_cache, RedisJiraCache):
        await _cache.close()
    _cache = None


async def purge_cache_entry(cache: JiraCache, key: str) -> None:
    """Delete ``key`` now so the next read goes back to the store."""
    logger.debug("Purging cache entry %s", key)
    await cache.delete(key)
