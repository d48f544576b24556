"""FastAPI dependencies shared by the command routes."""

from collections.abc import AsyncIterator
from contextlib import suppress

from fastapi import Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache.manage import get_cache
from src.clients.jira_client import JiraClient
from src.clients.preference_store import PreferenceStore
from src.config import settings
from src.context import JiraContext, StoreRepoChannelLookup
from src.database import get_db


async def get_jira_context(db: AsyncSession = Depends(get_db)) -> AsyncIterator[JiraContext]:
    try:
        config = settings.jira_config()
    except RuntimeError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
    cache = get_cache()
    store = PreferenceStore(db)
    jira = JiraClient(config, cache)
    try:
        yield JiraContext(
            workspace_id=settings.workspace_id,
            config=config,
            cache=cache,
            store=store,
            jira=jira,
            repo_channels=StoreRepoChannelLookup(store, settings.workspace_id),
        )
    finally:
        with suppress(Exception):
            await jira.close()
