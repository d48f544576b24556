"""Tests for Slack delivery with update-vs-repost semantics."""

from unittest.mock import AsyncMock

import httpx
import pytest

from src.clients.slack_client import SlackApiError, SlackClient
from src.database import async_session
from src.handlers.delivery import SlackMessageClient, mark_routed, message_seen
from src.schemas.notifications import MessageOptions, Notification

MESSAGE_ID = "jira/issue_updated/PROJ-1/1700000000000"


def _notification(channels, post="always", category="issueComment"):
    return Notification(
        text="JIRA Issue updated PROJ-1",
        blocks=[{"type": "section", "text": {"type": "mrkdwn", "text": "hi"}}],
        channels=channels,
        options=MessageOptions(id=MESSAGE_ID, category=category, post=post),
    )


def _slack():
    slack = AsyncMock()
    slack.post_message.side_effect = lambda channel, blocks, text: f"ts-{channel}"
    slack.update_message.side_effect = lambda channel, ts, blocks, text: ts
    return slack


async def test_first_delivery_posts_to_every_channel():
    slack = _slack()
    async with async_session() as db:
        delivered = await SlackMessageClient(slack, db).address_channels(_notification(["eng", "ops"]))

    assert delivered == ["eng", "ops"]
    assert slack.post_message.await_count == 2
    slack.update_message.assert_not_awaited()


async def test_second_delivery_updates_in_place():
    slack = _slack()
    async with async_session() as db:
        client = SlackMessageClient(slack, db)
        await client.address_channels(_notification(["eng"]))
        await client.address_channels(_notification(["eng"], post="update_only"))

    assert slack.post_message.await_count == 1
    slack.update_message.assert_awaited_once()
    assert slack.update_message.await_args.args[:2] == ("eng", "ts-eng")


async def test_update_only_skips_channels_without_message():
    slack = _slack()
    async with async_session() as db:
        client = SlackMessageClient(slack, db)
        await client.address_channels(_notification(["eng"]))
        delivered = await client.address_channels(_notification(["eng", "ops"], post="update_only"))

    assert delivered == ["eng"]
    assert slack.post_message.await_count == 1


async def test_other_category_with_same_id_posts_its_own_message():
    slack = _slack()
    async with async_session() as db:
        client = SlackMessageClient(slack, db)
        await client.address_channels(_notification(["eng"], category="issueComment"))
        await client.address_channels(_notification(["eng"], category="issueStatus"))

    assert slack.post_message.await_count == 2
    slack.update_message.assert_not_awaited()


async def test_failed_channel_keeps_earlier_posts():
    slack = _slack()
    slack.post_message.side_effect = [
        "ts-eng",
        SlackApiError("chat.postMessage", "ratelimited"),
    ]
    async with async_session() as db:
        with pytest.raises(SlackApiError):
            await SlackMessageClient(slack, db).address_channels(_notification(["eng", "ops"]))

        slack.post_message.side_effect = lambda channel, blocks, text: f"ts-{channel}"
        delivered = await SlackMessageClient(slack, db).address_channels(_notification(["eng", "ops"]))

    assert delivered == ["eng", "ops"]
    slack.update_message.assert_awaited_once()
    assert slack.post_message.await_args.args[0] == "ops"


async def test_seen_only_after_marked_routed():
    async with async_session() as db:
        assert await message_seen(db, MESSAGE_ID, "issueComment") is False

        await mark_routed(db, MESSAGE_ID, "issueComment", 2)
        await mark_routed(db, MESSAGE_ID, "issueComment", 2)

        assert await message_seen(db, MESSAGE_ID, "issueComment") is True
        assert await message_seen(db, MESSAGE_ID, "issueStatus") is False

async def test_slack_client_posts_blocks():
    sent = []

    def handler(request: httpx.Request) -> httpx.Response:
        sent.append(request)
        return httpx.Response(200, json={"ok": True, "ts": "1700000000.000100"})

    slack = SlackClient("xoxb-test", transport=httpx.MockTransport(handler))
    ts = await slack.post_message("eng", [{"type": "divider"}], "fallback")
    await slack.close()

    assert ts == "1700000000.000100"
    assert sent[0].url.path == "/api/chat.postMessage"
    assert sent[0].headers["Authorization"] == "Bearer xoxb-test"


async def test_slack_client_raises_on_api_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"ok": False, "error": "channel_not_found"}))
    slack = SlackClient("xoxb-test", transport=transport)

    with pytest.raises(SlackApiError) as excinfo:
        await slack.post_message("nowhere", [], "fallback")
    await slack.close()

    assert excinfo.value.error_code == "channel_not_found"
