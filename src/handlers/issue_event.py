"""Orchestrates routing of an inbound Jira issue webhook.

Redelivery-aware: a webhook whose identity and category already reached every
accepting channel is routed with ``new_event=False`` so existing Slack messages
are updated rather than posted again. An event that failed part way is not
marked and is delivered in full on the next attempt. Routing failures are
logged and reported in the response; nobody is waiting on a webhook, so
nothing else surfaces them.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy.ext.asyncio import AsyncSession

from src.cache.manage import get_cache
from src.clients.jira_client import JiraClient
from src.clients.preference_store import PreferenceStore
from src.clients.slack_client import SlackClient
from src.config import settings
from src.context import JiraContext, StoreRepoChannelLookup
from src.handlers.approval import build_approval_hook, handle_approval_event
from src.handlers.delivery import SlackMessageClient, mark_routed, message_seen
from src.handlers.route_event import message_identity, route_event
from src.schemas.events import IssueEvent, WebhookResponse, classify_event

logger = logging.getLogger(__name__)


async def handle_issue_event(db: AsyncSession, event: IssueEvent) -> WebhookResponse:
    """Process one Jira issue webhook event."""
    logger.info(
        "Jira event received: %s/%s for %s",
        event.webhook_event,
        event.issue_event_type_name,
        event.issue.key,
    )
    message_id = message_identity(event)
    category = classify_event(event.webhook_event, event.issue_event_type_name)
    category_name = category.value if category else ""
    jira: JiraClient | None = None
    slack: SlackClient | None = None

    try:
        new_event = not await message_seen(db, message_id, category_name)
        config = settings.jira_config()
        jira = JiraClient(config, get_cache())
        slack = SlackClient(settings.slack_bot_token)
        store = PreferenceStore(db)
        ctx = JiraContext(
            workspace_id=settings.workspace_id,
            config=config,
            cache=get_cache(),
            store=store,
            jira=jira,
            repo_channels=StoreRepoChannelLookup(store, settings.workspace_id),
            messages=SlackMessageClient(slack, db),
        )
        result = await route_event(ctx, event, new_event=new_event)
        if result.notification is not None and new_event:
            await mark_routed(db, message_id, category_name, len(result.delivered))

        if settings.approval_webhook_url and new_event:
            await handle_approval_event(ctx, event, build_approval_hook(settings.approval_webhook_url))
    except Exception as exc:
        logger.error("Jira routing failed for %s (%s): %s", event.issue.key, message_id, exc)
        return WebhookResponse(
            status="failed",
            category=category_name or None,
            message_id=message_id,
            errors=[str(exc)[:500]],
        )
    finally:
        if jira is not None:
            with suppress(Exception):
                await jira.close()
        if slack is not None:
            with suppress(Exception):
                await slack.close()

    if result.category is None:
        return WebhookResponse(status="ignored", message_id=message_id)
    if result.notification is None:
        status = "skipped"
    elif not new_event:
        status = "updated"
    else:
        status = "processed"
    return WebhookResponse(
        status=status,
        category=result.category.value,
        message_id=message_id,
        channels=result.delivered,
    )
