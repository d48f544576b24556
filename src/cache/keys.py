"""Storage and cache key builders for mappings and preferences."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from typing import Any

logger = logging.getLogger(__name__)

MAPPING_CACHE_PREFIX = "jira:mappings:"
PREFERENCE_CACHE_PREFIX = "jira:prefs:"


def _structural_hash(payload: Mapping[str, Any]) -> str:
    # Canonical JSON: key order never matters, an absent key differs from null or "".
    canonical = json.dumps(dict(payload), sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()


def build_jira_hash_key(workspace_id: str, payload: Mapping[str, Any]) -> str:
    """Storage key for a mapping payload ``{projectId, componentId?, channel}``."""
    readable = "-".join(
        str(payload.get(name) or "") for name in ("componentId", "projectId", "channel")
    )
    key = f"{workspace_id}-{readable}-{_structural_hash(payload)}"
    logger.debug("Generated hash key %s for payload %s", key, dict(payload))
    return key


def mapping_cache_key(workspace_id: str, payload: Mapping[str, Any]) -> str:
    return MAPPING_CACHE_PREFIX + build_jira_hash_key(workspace_id, payload)


def preference_store_key(workspace_id: str, channel: str) -> str:
    return f"{workspace_id}-preferences-{channel}"


def preference_cache_key(workspace_id: str, channel: str) -> str:
    return f"{PREFERENCE_CACHE_PREFIX}{workspace_id}:{channel}"
