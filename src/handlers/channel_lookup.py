"""Find the channels an issue event should reach."""

from __future__ import annotations

import asyncio
import logging

from src.cache.lookup import cached_mapping_lookup
from src.context import JiraContext
from src.handlers.preferences import query_jira_channel_prefs
from src.schemas.events import IssueEvent, NotificationCategory
from src.schemas.jira import IssueDetail
from src.schemas.preferences import JiraPreference

logger = logging.getLogger(__name__)


async def _dynamic_channels(ctx: JiraContext, event: IssueEvent) -> set[str]:
    if not ctx.config.use_dynamic_channels or ctx.repo_channels is None:
        return set()
    repos = await ctx.jira.get_issue_repos(event.issue.id)
    if not repos:
        return set()
    channels = await ctx.repo_channels.channels_for_repos(repos)
    logger.debug("Dynamic channels for %s via %s: %s", event.issue.key, repos, sorted(channels))
    return channels


async def determine_notify_channels(
    ctx: JiraContext, event: IssueEvent, detail: IssueDetail
) -> set[str]:
    """Channels mapped to the issue's project or components, plus dynamic ones.

    A component mapping adds its channel on top of the project mappings.
    """
    channels: set[str] = set()
    project = detail.fields.project
    if project is not None:
        components = set(detail.component_ids)
        for mapping in await cached_mapping_lookup(ctx, {"projectId": project.id}):
            if mapping.componentId is None or mapping.componentId in components:
                channels.add(mapping.channel)
    else:
        logger.debug("Issue %s has no project, skipping static mappings", event.issue.key)

    channels |= await _dynamic_channels(ctx, event)
    return channels


async def parse_channels(
    ctx: JiraContext,
    channels: set[str] | list[str],
    category: NotificationCategory,
    issue_type: str | None = None,
) -> list[JiraPreference]:
    """Keep the channels whose preferences accept this category and issue type."""
    ordered = sorted(set(channels))
    prefs = await asyncio.gather(*(query_jira_channel_prefs(ctx, channel) for channel in ordered))
    accepted = [p for p in prefs if p.allows(category, issue_type)]
    logger.debug(
        "Channels accepting %s (%s): %s of %s",
        category.value,
        issue_type,
        [p.channel for p in accepted],
        ordered,
    )
    return accepted
