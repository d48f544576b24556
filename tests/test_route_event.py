"""End-to-end routing tests over the fake Jira and an in-memory store."""

import pytest

from src.clients.jira_client import JiraTransportError
from src.handlers.mappings import map_component_to_channel, map_project_to_channel
from src.handlers.preferences import set_jira_channel_prefs
from src.handlers.route_event import message_identity, route_event
from src.schemas.events import IssueEvent, NotificationCategory
from src.schemas.preferences import PreferenceUpdate
from src.templates.slack_templates import COMMENT_ACTION_ID, SET_STATUS_ACTION_ID
from tests.factories import issue_detail, issue_event, serve_issue, transitions

STATUS_CHANGE = {"id": "5", "items": [{"field": "status", "fromString": "Open", "toString": "In Progress"}]}


def _event(**kwargs) -> IssueEvent:
    return IssueEvent.model_validate(issue_event(**kwargs))


def _sent(jira_ctx):
    return [call.args[0] for call in jira_ctx.messages.address_channels.await_args_list]


async def test_created_issue_notifies_mapped_channel(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail(), transitions(("11", "Start Progress"), ("21", "Done")))
    await map_project_to_channel(jira_ctx, "eng", "100")

    result = await route_event(jira_ctx, _event())

    assert result.category is NotificationCategory.ISSUE_CREATED
    assert result.channels == ["eng"]
    (notification,) = _sent(jira_ctx)
    assert notification.options.id == "jira/issue_created/PROJ-1/1700000000000"
    assert notification.options.post == "always"
    assert notification.options.category == "issueCreated"
    assert notification.channels == ["eng"]
    assert "PROJ-1" in notification.text

    actions = notification.blocks[-1]
    assert actions["type"] == "actions"
    button, menu = actions["elements"]
    assert button["action_id"] == COMMENT_ACTION_ID
    assert button["value"] == "10001"
    assert menu["action_id"] == SET_STATUS_ACTION_ID
    assert [o["value"] for o in menu["options"]] == ["11", "21"]


async def test_redelivery_only_updates(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    await map_project_to_channel(jira_ctx, "eng", "100")

    await route_event(jira_ctx, _event(), new_event=False)

    (notification,) = _sent(jira_ctx)
    assert notification.options.id == "jira/issue_created/PROJ-1/1700000000000"
    assert notification.options.post == "update_only"


async def test_channel_mapped_twice_is_notified_once(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail(components=(("7", "API"),)))
    await map_project_to_channel(jira_ctx, "eng", "100")
    await map_component_to_channel(jira_ctx, "eng", "100", "7")

    result = await route_event(jira_ctx, _event())

    assert result.channels == ["eng"]
    (notification,) = _sent(jira_ctx)
    assert notification.channels == ["eng"]


async def test_component_mapping_adds_channel_only_for_matching_component(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail(components=(("8", "UI"),)))
    await map_project_to_channel(jira_ctx, "eng", "100")
    await map_component_to_channel(jira_ctx, "api-team", "100", "7")

    result = await route_event(jira_ctx, _event())

    assert result.channels == ["eng"]


async def test_state_change_is_opt_in(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    await map_project_to_channel(jira_ctx, "c1", "100")
    await set_jira_channel_prefs(jira_ctx, "c1", PreferenceUpdate())

    result = await route_event(jira_ctx, _event(
        webhook_event="jira:issue_updated", type_name="issue_updated", changelog=STATUS_CHANGE,
    ))

    assert result.category is NotificationCategory.ISSUE_STATE
    assert result.channels == []
    assert result.notification is None
    jira_ctx.messages.address_channels.assert_not_awaited()


async def test_state_change_reaches_opted_in_channel(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    await map_project_to_channel(jira_ctx, "c1", "100")
    await map_project_to_channel(jira_ctx, "c2", "100")
    await set_jira_channel_prefs(jira_ctx, "c2", PreferenceUpdate(issueState=True))

    result = await route_event(jira_ctx, _event(
        webhook_event="jira:issue_updated", type_name="issue_updated", changelog=STATUS_CHANGE,
    ))

    assert result.channels == ["c2"]
    (notification,) = _sent(jira_ctx)
    assert notification.options.id == "jira/issue_updated/PROJ-1/1700000000000"
    assert any("In Progress" in b.get("text", {}).get("text", "") for b in notification.blocks)


async def test_issue_type_preference_filters_channel(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail(issue_type="Bug"))
    await map_project_to_channel(jira_ctx, "eng", "100")
    await set_jira_channel_prefs(jira_ctx, "eng", PreferenceUpdate(bug=False))

    result = await route_event(jira_ctx, _event())

    assert result.channels == []


async def test_comment_notification_quotes_body(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    await map_project_to_channel(jira_ctx, "eng", "100")

    result = await route_event(jira_ctx, _event(
        webhook_event="comment_created",
        type_name=None,
        comment={"id": "1", "body": "Looks good", "author": {"displayName": "Jane Doe"}},
    ))

    assert result.category is NotificationCategory.ISSUE_COMMENT
    (notification,) = _sent(jira_ctx)
    texts = [b.get("text", {}).get("text", "") for b in notification.blocks]
    assert any(">Looks good" in t and "Jane Doe" in t for t in texts)


async def test_deleted_issue_uses_webhook_fields(jira_ctx, fake_jira):
    await map_project_to_channel(jira_ctx, "eng", "100")
    event = _event(webhook_event="jira:issue_deleted", type_name="issue_deleted")
    payload = event.model_dump(by_alias=True)
    payload["issue"]["fields"] = issue_detail()["fields"]

    result = await route_event(jira_ctx, IssueEvent.model_validate(payload))

    assert result.category is NotificationCategory.ISSUE_DELETED
    assert fake_jira.requests == []
    (notification,) = _sent(jira_ctx)
    assert notification.options.id == "jira/issue_deleted/PROJ-1/1700000000000"
    assert all(e["action_id"] != COMMENT_ACTION_ID for b in notification.blocks if b["type"] == "actions" for e in b["elements"])


async def test_unclassified_event_is_dropped_without_fetching(jira_ctx, fake_jira):
    await map_project_to_channel(jira_ctx, "eng", "100")

    result = await route_event(jira_ctx, _event(webhook_event="jira:issue_updated", type_name=None))

    assert result.category is None
    assert fake_jira.requests == []
    jira_ctx.messages.address_channels.assert_not_awaited()


async def test_no_mapped_channels_sends_nothing(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())

    result = await route_event(jira_ctx, _event())

    assert result.channels == []
    jira_ctx.messages.address_channels.assert_not_awaited()


async def test_fetch_failure_aborts_route(jira_ctx, fake_jira):
    await map_project_to_channel(jira_ctx, "eng", "100")

    with pytest.raises(JiraTransportError) as excinfo:
        await route_event(jira_ctx, _event())

    assert excinfo.value.status_code == 404
    jira_ctx.messages.address_channels.assert_not_awaited()


async def test_issue_detail_is_cached_between_events(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    await map_project_to_channel(jira_ctx, "eng", "100")

    await route_event(jira_ctx, _event())
    await route_event(jira_ctx, _event(timestamp=1700000000001))

    assert fake_jira.calls_to("/rest/api/2/issue/10001") == 1
    assert fake_jira.calls_to("/rest/api/2/issue/10001/transitions") == 1


async def test_dynamic_channels_from_linked_repos(jira_ctx, fake_jira):
    serve_issue(fake_jira, issue_detail())
    fake_jira.add("/rest/dev-status/latest/issue/detail", {"detail": [{"repositories": [{"name": "api"}]}]})
    jira_ctx.config = jira_ctx.config.model_copy(update={"use_dynamic_channels": True})
    await jira_ctx.repo_channels.link("api", ["api-dev"])

    result = await route_event(jira_ctx, _event())

    assert result.channels == ["api-dev"]


def test_message_identity_for_updates():
    event = _event(webhook_event="jira:issue_updated", type_name="issue_generic", key="OPS-9", timestamp=42)
    assert message_identity(event) == "jira/issue_updated/OPS-9/42"
