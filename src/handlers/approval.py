"""Approval gate driven by Jira status changes.

An issue raised for a deployment approval carries tags in its description
(``[sdm:sha:...]``, ``[sdm:owner:...]``, ``[sdm:repo:...]``, ``[sdm:branch:...]``).
When such an issue moves to the ``Approved`` status the caller's callback is
invoked with the tagged commit.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Awaitable, Callable
from dataclasses import asdict, dataclass

import httpx

from src.context import JiraContext
from src.schemas.events import IssueEvent
from src.schemas.jira import IssueDetail

logger = logging.getLogger(__name__)

APPROVED_STATUS = "Approved"

_TAG_PATTERNS = {
    name: re.compile(rf"\[sdm:{name}:(.*?)\]") for name in ("sha", "owner", "repo", "branch")
}
_STATE_CHANGE_TYPES = frozenset({"issue_generic", "issue_updated", "issue_assigned"})


@dataclass(frozen=True)
class ApprovalTarget:
    issue_id: str
    sha: str
    owner: str
    repo: str
    branch: str


def extract_approval_target(issue_id: str, description: str | None) -> ApprovalTarget | None:
    tags = {}
    for name, pattern in _TAG_PATTERNS.items():
        match = pattern.search(description or "")
        if match is None or not match.group(1):
            return None
        tags[name] = match.group(1)
    return ApprovalTarget(issue_id=issue_id, **tags)


async def handle_approval_event(
    ctx: JiraContext,
    event: IssueEvent,
    on_approved: Callable[[ApprovalTarget], Awaitable[None]],
) -> ApprovalTarget | None:
    """Invoke ``on_approved`` when ``event`` moves a tagged issue to Approved.

    Events without environment tags, of the wrong type, or not landing on
    Approved are ignored and return None.
    """
    raw = await ctx.jira.get_details(ctx.jira.issue_url(event.issue.id))
    issue = IssueDetail.model_validate(raw)

    target = extract_approval_target(event.issue.id, issue.fields.description)
    if target is None:
        logger.info("Jira approval: no environment data found on %s, skipping", event.issue.key)
        return None

    if (
        event.webhook_event != "jira:issue_updated"
        or event.issue_event_type_name not in _STATE_CHANGE_TYPES
        or event.changelog is None
    ):
        logger.info("Jira approval: %s is not a state change, skipping", event.issue.key)
        return None

    status = event.changelog.items_for("status")
    logger.info("Jira approval: new status for %s => %s", event.issue.key, [s.to_string for s in status])
    if not status or status[0].to_string != APPROVED_STATUS:
        return None

    await on_approved(target)
    return target


def build_approval_hook(
    url: str, transport: httpx.AsyncBaseTransport | None = None
) -> Callable[[ApprovalTarget], Awaitable[None]]:
    """Callback that POSTs the approved commit to ``url`` as JSON."""

    async def _notify(target: ApprovalTarget) -> None:
        async with httpx.AsyncClient(timeout=10.0, transport=transport) as client:
            resp = await client.post(url, json=asdict(target))
            resp.raise_for_status()
        logger.info("Jira approval: %s/%s@%s approved via %s", target.owner, target.repo, target.sha, target.issue_id)

    return _notify
