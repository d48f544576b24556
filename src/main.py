"""FastAPI application for jira-notifier."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.cache.manage import close_cache, get_cache
from src.config import settings
from src.database import close_db, init_db
from src.routes.commands import router as commands_router
from src.routes.webhooks import router as webhooks_router

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("jira-notifier starting up (cache backend: %s)", settings.cache_backend)
    await init_db()
    get_cache()
    yield
    logger.info("jira-notifier shutting down")
    await close_cache()
    await close_db()


app = FastAPI(
    title="Jira Notifier",
    description="Routes Jira issue events to Slack channels by mapping and preference",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(webhooks_router, prefix=settings.api_prefix)
app.include_router(commands_router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "jira-notifier"}
