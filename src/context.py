"""Explicit per-request context for the routing core."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from src.cache.base import JiraCache
from src.clients.jira_client import JiraClient
from src.clients.preference_store import REPO_CHANNELS_SCOPE, PreferenceStore
from src.config import JiraConfig
from src.schemas.notifications import Notification


class MessageClient(Protocol):
    async def address_channels(self, notification: Notification) -> list[str]:
        """Deliver ``notification`` and return the channels it reached."""
        ...


class RepoChannelLookup(Protocol):
    async def channels_for_repos(self, repos: list[str]) -> set[str]:
        ...


class StoreRepoChannelLookup:
    """Repository -> channel links kept in the preference store."""

    def __init__(self, store: PreferenceStore, workspace_id: str) -> None:
        self._store = store
        self._workspace_id = workspace_id

    def _key(self, repo: str) -> str:
        return f"{self._workspace_id}-repo-{repo}"

    async def link(self, repo: str, channels: list[str]) -> None:
        await self._store.put(self._key(repo), {"repo": repo, "channels": sorted(set(channels))}, REPO_CHANNELS_SCOPE)

    async def channels_for_repos(self, repos: list[str]) -> set[str]:
        found: set[str] = set()
        for repo in repos:
            record = await self._store.get(self._key(repo), REPO_CHANNELS_SCOPE)
            if record:
                found.update(record.get("channels", []))
        return found


@dataclass
class JiraContext:
    workspace_id: str
    config: JiraConfig
    cache: JiraCache
    store: PreferenceStore
    jira: JiraClient
    repo_channels: RepoChannelLookup | None = None
    messages: MessageClient | None = None
