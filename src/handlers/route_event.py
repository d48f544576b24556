"""Route one Jira issue event to the Slack channels that want it.

1. Classify the event into exactly one notification category (or drop it).
2. Fetch the issue detail and available transitions through the cache.
3. Resolve mapped channels and keep those whose preferences accept the event.
4. Compose a message with a stable identity and hand it to the message client.

Fetch and store failures propagate and abort the route; nothing is sent.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from src.context import JiraContext
from src.handlers.channel_lookup import determine_notify_channels, parse_channels
from src.schemas.events import IssueEvent, NotificationCategory, classify_event
from src.schemas.jira import IssueDetail, JiraIssueTransitions
from src.schemas.notifications import MessageOptions, Notification
from src.templates.slack_templates import (
    build_issue_actions,
    build_issue_description,
    build_jira_footer,
    prepare_issue_commented_message,
    prepare_issue_deleted_message,
    prepare_new_issue_message,
    prepare_state_change_message,
)

logger = logging.getLogger(__name__)

ISSUE_DETAIL_TTL = 30
TRANSITIONS_TTL = 5

_IDENTITY_KINDS = {
    "jira:issue_created": "issue_created",
    "jira:issue_deleted": "issue_deleted",
}
_TRANSITION_EVENTS = frozenset({"jira:issue_created", "jira:issue_updated", "comment_created"})


@dataclass
class RouteResult:
    category: NotificationCategory | None
    notification: Notification | None = None
    channels: list[str] = field(default_factory=list)
    delivered: list[str] = field(default_factory=list)


def message_identity(event: IssueEvent) -> str:
    kind = _IDENTITY_KINDS.get(event.webhook_event, "issue_updated")
    return f"jira/{kind}/{event.issue.key}/{event.timestamp}"


def message_options(
    event: IssueEvent, new_event: bool, category: NotificationCategory | None = None
) -> MessageOptions:
    return MessageOptions(
        id=message_identity(event),
        category=category.value if category else "",
        post="always" if new_event else "update_only",
    )


async def get_issue_detail(ctx: JiraContext, event: IssueEvent) -> IssueDetail:
    if event.webhook_event == "jira:issue_deleted":
        # The issue is gone upstream; the webhook carries its last known fields.
        return IssueDetail.model_validate({
            "id": event.issue.id,
            "key": event.issue.key,
            "self": event.issue.self_url,
            "fields": event.issue.fields or {},
        })
    raw = await ctx.jira.get_details(
        f"{ctx.jira.issue_url(event.issue.id)}?expand=changelog",
        cacheable=True,
        ttl=ISSUE_DETAIL_TTL,
    )
    return IssueDetail.model_validate(raw)


async def get_issue_transitions(ctx: JiraContext, event: IssueEvent) -> JiraIssueTransitions:
    if event.webhook_event not in _TRANSITION_EVENTS:
        return JiraIssueTransitions()
    raw = await ctx.jira.get_details(
        f"{ctx.jira.issue_url(event.issue.id)}/transitions",
        cacheable=True,
        ttl=TRANSITIONS_TTL,
    )
    return JiraIssueTransitions.model_validate(raw or {})


def _unique_channels(channels: list[str]) -> list[str]:
    seen: set[str] = set()
    unique = []
    for channel in channels:
        if channel not in seen:
            seen.add(channel)
            unique.append(channel)
    return unique


async def route_event(ctx: JiraContext, event: IssueEvent, new_event: bool = True) -> RouteResult:
    """Route ``event``; ``new_event`` False means a redelivery that may only update."""
    category = classify_event(event.webhook_event, event.issue_event_type_name)
    if category is None:
        logger.info(
            "Jira event %s/%s for %s has no notification category, dropping",
            event.webhook_event,
            event.issue_event_type_name,
            event.issue.key,
        )
        return RouteResult(category=None)

    detail = await get_issue_detail(ctx, event)
    transitions = await get_issue_transitions(ctx, event)

    candidates = await determine_notify_channels(ctx, event, detail)
    accepted = await parse_channels(ctx, candidates, category, detail.issue_type)
    channels = _unique_channels([p.channel for p in accepted])

    content = [
        *prepare_new_issue_message(event.webhook_event, detail),
        *prepare_issue_deleted_message(event),
        *prepare_state_change_message(event),
        *prepare_issue_commented_message(event, detail),
    ]
    if not content or not channels:
        if not content:
            logger.debug("Jira route %s: message is empty, not sending", event.issue.key)
        if not channels:
            logger.debug("Jira route %s: no channels found, not sending", event.issue.key)
        return RouteResult(category=category, channels=channels)

    description = build_issue_description(event, detail, ctx.jira.browse_url(event.issue.key))
    blocks = [
        {"type": "section", "text": {"type": "mrkdwn", "text": description}},
        *content,
        build_jira_footer(detail),
    ]
    actions = build_issue_actions(event, detail, transitions)
    if actions is not None:
        blocks.append(actions)

    notification = Notification(
        text=description,
        blocks=blocks,
        channels=channels,
        options=message_options(event, new_event, category),
    )

    delivered: list[str] = []
    if ctx.messages is not None:
        delivered = await ctx.messages.address_channels(notification)
    logger.info(
        "Jira %s for %s routed to %s (%s)",
        category.value,
        event.issue.key,
        channels,
        notification.options.post,
    )
    return RouteResult(category=category, notification=notification, channels=channels, delivered=delivered)
