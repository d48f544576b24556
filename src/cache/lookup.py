"""Cache-fronted reads of channel mappings and preferences."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.cache.keys import (
    build_jira_hash_key,
    mapping_cache_key,
    preference_cache_key,
    preference_store_key,
)
from src.clients.preference_store import MAPPINGS_SCOPE, PREFERENCES_SCOPE
from src.schemas.preferences import JiraMapping

if TYPE_CHECKING:
    from src.context import JiraContext

logger = logging.getLogger(__name__)


def _matches(mapping: JiraMapping, filters: dict) -> bool:
    return all(getattr(mapping, name) == value for name, value in filters.items())


async def cached_mapping_lookup(ctx: JiraContext, filters: dict) -> list[JiraMapping]:
    """All mappings in the workspace whose fields equal every given filter.

    ``filters`` is a subset of ``{projectId, componentId, channel}``; an empty
    filter returns every mapping.
    """
    cache_key = mapping_cache_key(ctx.workspace_id, filters)
    cached = await ctx.cache.get(cache_key)
    if cached is not None:
        logger.debug("Mapping lookup %s: cache hit", filters)
        return [JiraMapping.model_validate(m) for m in cached]

    mappings = []
    for key, value in await ctx.store.list(MAPPINGS_SCOPE, prefix=f"{ctx.workspace_id}-"):
        mapping = JiraMapping.model_validate(value)
        # Guards against another workspace whose id shares our prefix.
        if key != build_jira_hash_key(ctx.workspace_id, mapping.payload()):
            continue
        if _matches(mapping, filters):
            mappings.append(mapping)

    logger.debug("Mapping lookup %s: cache miss, found %d", filters, len(mappings))
    await ctx.cache.set(cache_key, [m.model_dump() for m in mappings])
    return mappings


async def cached_preference_lookup(ctx: JiraContext, channel: str) -> dict | None:
    """Raw stored preference record for a channel, or None if never set."""
    cache_key = preference_cache_key(ctx.workspace_id, channel)
    cached = await ctx.cache.get(cache_key)
    if cached is not None:
        logger.debug("Preference lookup %s: cache hit", channel)
        # An empty dict caches "no record" so misses are not re-read either.
        return cached or None

    record = await ctx.store.get(preference_store_key(ctx.workspace_id, channel), PREFERENCES_SCOPE)
    await ctx.cache.set(cache_key, record or {})
    return record
