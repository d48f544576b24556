"""Slack Block Kit builders for Jira issue notifications."""

from __future__ import annotations

from src.schemas.events import IssueEvent
from src.schemas.jira import IssueDetail, JiraIssueTransitions

COMMENT_ACTION_ID = "jira_comment_on_issue"
SET_STATUS_ACTION_ID = "jira_set_issue_status"

_MAX_TEXT = 2900


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _truncate(text: str) -> str:
    return text if len(text) <= _MAX_TEXT else text[: _MAX_TEXT - 1] + "…"


def _link(url: str, text: str) -> str:
    return f"<{url}|{_escape(text)}>"


def _section(text: str) -> dict:
    return {"type": "section", "text": {"type": "mrkdwn", "text": _truncate(text)}}


def build_issue_description(event: IssueEvent, detail: IssueDetail, browse_url: str) -> str:
    """Headline for the notification; also used as the fallback text."""
    if event.webhook_event == "jira:issue_deleted":
        return _link(browse_url, f"JIRA Issue {event.issue.key} deleted")
    verb = "created" if event.webhook_event == "jira:issue_created" else "updated"
    return f"JIRA Issue {verb} " + _link(browse_url, f"{event.issue.key}: {detail.fields.summary}")


def prepare_new_issue_message(webhook_event: str, detail: IssueDetail) -> list[dict]:
    if webhook_event != "jira:issue_created":
        return []
    fields = detail.fields
    summary_fields = [
        {"type": "mrkdwn", "text": f"*Type:*\n{detail.issue_type or 'Unknown'}"},
        {"type": "mrkdwn", "text": f"*Status:*\n{fields.status.name if fields.status else 'Unknown'}"},
        {
            "type": "mrkdwn",
            "text": f"*Assignee:*\n{fields.assignee.display_name if fields.assignee else 'Unassigned'}",
        },
    ]
    if fields.reporter:
        summary_fields.append({"type": "mrkdwn", "text": f"*Reporter:*\n{fields.reporter.display_name}"})

    blocks: list[dict] = [{"type": "section", "fields": summary_fields}]
    if fields.description:
        blocks.append(_section(f"*Description:*\n{_escape(fields.description)}"))
    return blocks


def prepare_issue_deleted_message(event: IssueEvent) -> list[dict]:
    if event.webhook_event != "jira:issue_deleted":
        return []
    return [_section(f":wastebasket: Issue {event.issue.key} was deleted")]


def prepare_state_change_message(event: IssueEvent) -> list[dict]:
    if event.webhook_event != "jira:issue_updated" or event.changelog is None:
        return []
    lines = [
        f"• *{_escape(item.field)}:* {_escape(item.from_string or 'None')} → {_escape(item.to_string or 'None')}"
        for item in event.changelog.items
    ]
    if not lines:
        return []
    return [_section("*Changes:*\n" + "\n".join(lines))]


def prepare_issue_commented_message(event: IssueEvent, detail: IssueDetail) -> list[dict]:
    if event.comment is None:
        return []
    author = event.comment.author.display_name if event.comment.author else "Someone"
    return [
        _section(
            f"*{_escape(author)}* commented on {event.issue.key} ({_escape(detail.fields.summary)}):\n"
            f">{_escape(event.comment.body)}"
        )
    ]


def build_jira_footer(detail: IssueDetail) -> dict:
    fields = detail.fields
    parts = []
    if fields.project:
        parts.append(f"Project: {fields.project.name or fields.project.key}")
    if fields.components:
        parts.append("Components: " + ", ".join(c.name for c in fields.components))
    if fields.priority:
        parts.append(f"Priority: {fields.priority.name}")
    return {
        "type": "context",
        "elements": [{"type": "mrkdwn", "text": _escape(" | ".join(parts) or "JIRA")}],
    }


def build_issue_actions(
    event: IssueEvent,
    detail: IssueDetail,
    transitions: JiraIssueTransitions,
) -> dict | None:
    """Comment button and status menu, or None when neither applies."""
    elements: list[dict] = []
    if event.webhook_event != "jira:issue_deleted":
        elements.append({
            "type": "button",
            "action_id": COMMENT_ACTION_ID,
            "text": {"type": "plain_text", "text": "Comment"},
            "value": event.issue.id,
        })
    if transitions.transitions:
        elements.append({
            "type": "static_select",
            "action_id": SET_STATUS_ACTION_ID,
            "placeholder": {"type": "plain_text", "text": "Set Status"},
            "options": [
                {
                    "text": {"type": "plain_text", "text": t.name},
                    "value": t.id,
                }
                for t in transitions.transitions
            ],
        })
    if not elements:
        return None
    return {"type": "actions", "block_id": f"jira-actions-{event.issue.id}", "elements": elements}
