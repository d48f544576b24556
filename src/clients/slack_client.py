"""Slack Web API client (Bot token, Block Kit)."""

from __future__ import annotations

import logging

import httpx

logger = logging.getLogger(__name__)

_SLACK_API = "https://slack.com/api"


class SlackApiError(RuntimeError):
    def __init__(self, method: str, error_code: str) -> None:
        self.method = method
        self.error_code = error_code
        super().__init__(f"Slack API error on {method}: {error_code}")


class SlackClient:
    """Post and update channel messages via Slack Web API."""

    def __init__(self, bot_token: str, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not bot_token:
            raise RuntimeError("Slack not configured: set NOTIF_SLACK_BOT_TOKEN")
        self._headers = {
            "Authorization": f"Bearer {bot_token}",
            "Content-Type": "application/json; charset=utf-8",
        }
        self._client = httpx.AsyncClient(timeout=10.0, transport=transport)

    async def _call(self, method: str, payload: dict) -> dict:
        resp = await self._client.post(f"{_SLACK_API}/{method}", json=payload, headers=self._headers)
        resp.raise_for_status()
        data = resp.json()
        if not data.get("ok"):
            error_code = data.get("error", "unknown_error")
            logger.error("Slack API error on %s: %s", method, error_code)
            raise SlackApiError(method, error_code)
        return data

    async def post_message(self, channel: str, blocks: list[dict], text: str) -> str:
        """Post a new message and return its ``ts``."""
        data = await self._call("chat.postMessage", {"channel": channel, "text": text, "blocks": blocks})
        logger.info("Slack message sent to %s", channel)
        return data["ts"]

    async def update_message(self, channel: str, ts: str, blocks: list[dict], text: str) -> str:
        data = await self._call("chat.update", {"channel": channel, "ts": ts, "text": text, "blocks": blocks})
        logger.info("Slack message %s updated in %s", ts, channel)
        return data.get("ts", ts)

    async def close(self) -> None:
        await self._client.aclose()
