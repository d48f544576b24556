"""Per-channel notification preference commands."""

from __future__ import annotations

import logging

from src.cache.keys import preference_cache_key, preference_store_key
from src.cache.lookup import cached_preference_lookup
from src.cache.manage import purge_cache_entry
from src.clients.preference_store import PREFERENCES_SCOPE
from src.context import JiraContext
from src.schemas.preferences import (
    JiraPreference,
    PreferenceUpdate,
    default_jira_prefs,
    munge_jira_prefs,
)

logger = logging.getLogger(__name__)


async def set_jira_channel_prefs(ctx: JiraContext, channel: str, update: PreferenceUpdate) -> JiraPreference:
    """Store the preferences given explicitly; omitted flags are left out of the record."""
    payload = {"channel": channel, **update.model_dump(exclude_none=True)}
    await ctx.store.put(preference_store_key(ctx.workspace_id, channel), payload, PREFERENCES_SCOPE)
    await purge_cache_entry(ctx.cache, preference_cache_key(ctx.workspace_id, channel))
    logger.info("Updated Jira notification preferences for channel %s", channel)
    return munge_jira_prefs(payload)


async def query_jira_channel_prefs(ctx: JiraContext, channel: str) -> JiraPreference:
    record = await cached_preference_lookup(ctx, channel)
    if record:
        return munge_jira_prefs({**record, "channel": channel})
    return default_jira_prefs(channel)
