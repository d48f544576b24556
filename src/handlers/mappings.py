"""Project/component to channel mapping commands.

Every write goes to the store first and then synchronously purges the cache
entries a later lookup could read, so no stale mapping outlives the command.
Component mappings are records of their own: mapping or unmapping a component
never touches the project-level mapping for the same channel.
"""

from __future__ import annotations

import logging

from src.cache.keys import build_jira_hash_key, mapping_cache_key
from src.cache.lookup import cached_mapping_lookup
from src.cache.manage import purge_cache_entry
from src.clients.preference_store import MAPPINGS_SCOPE
from src.context import JiraContext
from src.schemas.preferences import JiraMapping

logger = logging.getLogger(__name__)


def _invalidated_filters(mapping: JiraMapping) -> list[dict]:
    return [
        mapping.payload(),
        {"channel": mapping.channel},
        {"projectId": mapping.projectId},
        {},
    ]


async def submit_mapping_payload(ctx: JiraContext, mapping: JiraMapping, active: bool = True) -> bool:
    """Upsert (``active``) or delete one mapping record.

    Returns False when asked to delete a mapping that does not exist.
    """
    key = build_jira_hash_key(ctx.workspace_id, mapping.payload())
    if active:
        await ctx.store.put(key, mapping.payload(), MAPPINGS_SCOPE)
        changed = True
    else:
        changed = await ctx.store.delete(key, MAPPINGS_SCOPE)

    for filters in _invalidated_filters(mapping):
        await purge_cache_entry(ctx.cache, mapping_cache_key(ctx.workspace_id, filters))

    logger.info(
        "Jira mapping %s: project=%s component=%s channel=%s",
        "stored" if active else ("removed" if changed else "not found"),
        mapping.projectId,
        mapping.componentId,
        mapping.channel,
    )
    return changed


async def map_project_to_channel(ctx: JiraContext, channel: str, project_id: str) -> JiraMapping:
    mapping = JiraMapping(projectId=project_id, channel=channel)
    await submit_mapping_payload(ctx, mapping)
    return mapping


async def remove_project_map_from_channel(ctx: JiraContext, channel: str, project_id: str) -> bool:
    return await submit_mapping_payload(ctx, JiraMapping(projectId=project_id, channel=channel), active=False)


async def map_component_to_channel(
    ctx: JiraContext, channel: str, project_id: str, component_id: str
) -> JiraMapping:
    mapping = JiraMapping(projectId=project_id, componentId=component_id, channel=channel)
    await submit_mapping_payload(ctx, mapping)
    return mapping


async def remove_component_map_from_channel(
    ctx: JiraContext, channel: str, project_id: str, component_id: str
) -> bool:
    mapping = JiraMapping(projectId=project_id, componentId=component_id, channel=channel)
    return await submit_mapping_payload(ctx, mapping, active=False)


async def get_current_channel_mappings(ctx: JiraContext, channel: str) -> list[JiraMapping]:
    return await cached_mapping_lookup(ctx, {"channel": channel})
