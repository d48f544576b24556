"""Deliver notifications to Slack with update-vs-repost semantics."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.clients.slack_client import SlackClient
from src.models.delivered_message import DeliveredMessage
from src.models.routed_event import RoutedEvent
from src.schemas.notifications import Notification

logger = logging.getLogger(__name__)


async def message_seen(db: AsyncSession, message_id: str, category: str) -> bool:
    """True once an event of this identity and category reached all its channels.

    A route that failed part way is not marked, so its redelivery is treated as
    new and posts to the channels that were missed.
    """
    result = await db.execute(
        select(RoutedEvent.id)
        .where(RoutedEvent.message_id == message_id, RoutedEvent.category == category)
        .limit(1)
    )
    return result.scalar_one_or_none() is not None


async def mark_routed(db: AsyncSession, message_id: str, category: str, channels: int) -> None:
    if await message_seen(db, message_id, category):
        return
    db.add(RoutedEvent(message_id=message_id, category=category, channels=channels))
    await db.commit()


class SlackMessageClient:
    """Address channels by message identity and category.

    A channel that already holds the message gets it updated in place. With
    ``post="update_only"`` channels that never received it are skipped.
    """

    def __init__(self, slack: SlackClient, db: AsyncSession) -> None:
        self._slack = slack
        self._db = db

    async def _existing(self, message_id: str, category: str) -> dict[str, DeliveredMessage]:
        result = await self._db.execute(
            select(DeliveredMessage).where(
                DeliveredMessage.message_id == message_id,
                DeliveredMessage.category == category,
            )
        )
        return {row.channel: row for row in result.scalars().all()}

    async def address_channels(self, notification: Notification) -> list[str]:
        message_id = notification.options.id
        category = notification.options.category
        existing = await self._existing(message_id, category)
        delivered: list[str] = []

        try:
            for channel in notification.channels:
                previous = existing.get(channel)
                if previous is not None:
                    previous.ts = await self._slack.update_message(
                        channel, previous.ts, notification.blocks, notification.text
                    )
                elif notification.options.post == "update_only":
                    logger.debug("Message %s never reached %s, not posting on redelivery", message_id, channel)
                    continue
                else:
                    ts = await self._slack.post_message(channel, notification.blocks, notification.text)
                    self._db.add(
                        DeliveredMessage(message_id=message_id, category=category, channel=channel, ts=ts)
                    )
                delivered.append(channel)
        finally:
            # Keep the ts of everything already posted even if a later channel failed.
            await self._db.commit()
        return delivered
