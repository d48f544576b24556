"""Webhook events whose notification reached every accepting channel."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from src.database import Base


class RoutedEvent(Base):
    __tablename__ = "routed_events"
    __table_args__ = (UniqueConstraint("message_id", "category", name="uq_routed_event"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    message_id = Column(String, nullable=False)
    category = Column(String, nullable=False)
    channels = Column(Integer, nullable=False, default=0)
    routed_at = Column(
        DateTime, default=lambda: datetime.now(timezone.utc), nullable=False
    )
