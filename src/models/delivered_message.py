"""Slack message timestamps per notification identity, category and channel."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from src.database import Base


class DeliveredMessage(Base):
    __tablename__ = "delivered_messages"
    __table_args__ = (
        UniqueConstraint("message_id", "category", "channel", name="uq_delivered_message_channel"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    message_id = Column(String, nullable=False, index=True)
    category = Column(String, nullable=False)
    channel = Column(String, nullable=False)
    ts = Column(String, nullable=False)
    delivered_at = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
