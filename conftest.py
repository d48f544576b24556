"""Shared test configuration; must be loaded before src modules."""

import os

# Override settings before any src modules are imported.
os.environ["NOTIF_DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["NOTIF_JIRA_URL"] = "https://jira.example.com"
os.environ["NOTIF_JIRA_USER"] = "svc-notifier"
os.environ["NOTIF_JIRA_PASSWORD"] = "secret"
os.environ["NOTIF_JIRA_USE_CACHE"] = "true"
os.environ["NOTIF_SLACK_BOT_TOKEN"] = "xoxb-test"
os.environ["NOTIF_CACHE_BACKEND"] = "memory"
os.environ["NOTIF_WORKSPACE_ID"] = "T1"

from unittest.mock import AsyncMock

import pytest
from src.cache.manage import get_cache
from src.cache.memory import MemoryJiraCache
from src.clients.jira_client import JiraClient
from src.clients.preference_store import PreferenceStore
from src.config import JiraConfig
from src.context import JiraContext, StoreRepoChannelLookup
from src.database import async_session, engine, Base
from src.models import delivered_message, preference_record, routed_event  # noqa: F401
from tests.factories import JIRA_URL, FakeJira


@pytest.fixture(autouse=True)
async def _reset_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
async def _flush_cache():
    await get_cache().flush_all()
    yield
    await get_cache().flush_all()


@pytest.fixture
def fake_jira():
    return FakeJira()


@pytest.fixture
async def jira_ctx(fake_jira):
    """JiraContext over the test database, a private cache and the fake Jira."""
    config = JiraConfig(url=JIRA_URL, vcstype="github", use_cache=True)
    cache = MemoryJiraCache()
    messages = AsyncMock()
    messages.address_channels.side_effect = lambda notification: list(notification.channels)

    async with async_session() as db:
        store = PreferenceStore(db)
        jira = JiraClient(config, cache, transport=fake_jira.transport())
        yield JiraContext(
            workspace_id="T1",
            config=config,
            cache=cache,
            store=store,
            jira=jira,
            repo_channels=StoreRepoChannelLookup(store, "T1"),
            messages=messages,
        )
        await jira.close()
