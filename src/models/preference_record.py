"""Scoped key/value records for channel mappings and preferences."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint

from src.database import Base


class PreferenceRecord(Base):
    __tablename__ = "preference_records"
    __table_args__ = (UniqueConstraint("scope", "key", name="uq_preference_scope_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    scope = Column(String, nullable=False, index=True)
    key = Column(String, nullable=False)
    value_json = Column(Text, nullable=False)
    updated_at = Column(
        DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
