"""Scoped key/value store for mappings and preferences (SQLAlchemy)."""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.preference_record import PreferenceRecord

logger = logging.getLogger(__name__)

MAPPINGS_SCOPE = "JIRAMappings"
PREFERENCES_SCOPE = "JIRAPreferences"
REPO_CHANNELS_SCOPE = "JIRARepoChannels"


class PreferenceStore:
    """Put/get/delete JSON values by key within a named scope.

    Writes commit immediately so a command handler can invalidate the cache
    right after and know the next read sees the new value. Calls are
    serialised because an AsyncSession does not allow concurrent use.
    """

    def __init__(self, db: AsyncSession) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def _record(self, key: str, scope: str) -> PreferenceRecord | None:
        result = await self._db.execute(
            select(PreferenceRecord).where(
                PreferenceRecord.scope == scope, PreferenceRecord.key == key
            )
        )
        return result.scalar_one_or_none()

    async def get(self, key: str, scope: str) -> Any | None:
        async with self._lock:
            record = await self._record(key, scope)
        return None if record is None else json.loads(record.value_json)

    async def put(self, key: str, value: Any, scope: str) -> None:
        payload = json.dumps(value, default=str)
        async with self._lock:
            record = await self._record(key, scope)
            if record is None:
                self._db.add(PreferenceRecord(scope=scope, key=key, value_json=payload))
            else:
                record.value_json = payload
            await self._db.commit()
        logger.debug("Stored %s/%s", scope, key)

    async def delete(self, key: str, scope: str) -> bool:
        async with self._lock:
            record = await self._record(key, scope)
            if record is None:
                return False
            await self._db.delete(record)
            await self._db.commit()
        logger.debug("Deleted %s/%s", scope, key)
        return True

    async def list(self, scope: str, prefix: str = "") -> list[tuple[str, Any]]:
        stmt = select(PreferenceRecord).where(PreferenceRecord.scope == scope)
        if prefix:
            stmt = stmt.where(PreferenceRecord.key.startswith(prefix, autoescape=True))
        async with self._lock:
            result = await self._db.execute(stmt.order_by(PreferenceRecord.id))
            records = result.scalars().all()
        return [(r.key, json.loads(r.value_json)) for r in records]
