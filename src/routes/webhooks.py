"""Webhook routes for jira-notifier."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from src.database import get_db
from src.handlers.issue_event import handle_issue_event
from src.schemas.events import IssueEvent, WebhookResponse

router = APIRouter(tags=["webhooks"])


@router.post("/webhooks/jira", response_model=WebhookResponse)
async def jira_issue_webhook(
    event: IssueEvent,
    db: AsyncSession = Depends(get_db),
) -> WebhookResponse:
    """Receive a Jira issue event.

    Notifies the mapped Slack channels whose preferences accept the event.
    Redelivered events update the messages already posted instead of posting again.
    """
    return await handle_issue_event(db, event)
