"""Tests for the webhook -> notification category table."""

import pytest

from src.schemas.events import IssueEvent, NotificationCategory, classify_event
from tests.factories import issue_event


@pytest.mark.parametrize(
    ("webhook_event", "type_name", "expected"),
    [
        ("jira:issue_created", "issue_created", NotificationCategory.ISSUE_CREATED),
        ("jira:issue_deleted", "issue_deleted", NotificationCategory.ISSUE_DELETED),
        ("jira:issue_deleted", None, NotificationCategory.ISSUE_DELETED),
        ("comment_created", None, NotificationCategory.ISSUE_COMMENT),
        ("comment_created", "issue_commented", NotificationCategory.ISSUE_COMMENT),
        ("jira:issue_updated", "issue_generic", NotificationCategory.ISSUE_STATUS),
        ("jira:issue_updated", "issue_updated", NotificationCategory.ISSUE_STATE),
        ("jira:issue_updated", "issue_assigned", NotificationCategory.ISSUE_STATE),
    ],
)
def test_known_pairs(webhook_event, type_name, expected):
    assert classify_event(webhook_event, type_name) is expected


@pytest.mark.parametrize(
    ("webhook_event", "type_name"),
    [
        ("jira:issue_created", None),
        ("jira:issue_created", "issue_updated"),
        ("jira:issue_updated", None),
        ("jira:issue_updated", "issue_commented"),
        ("jira:worklog_updated", "issue_worklog_updated"),
        ("comment_updated", None),
    ],
)
def test_unknown_pairs_have_no_category(webhook_event, type_name):
    assert classify_event(webhook_event, type_name) is None


def test_event_parses_jira_payload():
    event = IssueEvent.model_validate(issue_event(
        webhook_event="jira:issue_updated",
        type_name="issue_generic",
        issue_id=10001,
        changelog={"id": "5", "items": [{"field": "status", "fromString": "Open", "toString": "Done"}]},
        comment=None,
    ))

    assert event.issue.id == "10001"
    assert event.issue.self_url.endswith("/rest/api/2/issue/10001")
    assert event.changelog.items_for("status")[0].to_string == "Done"
