"""Channel mapping and notification preference records."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.events import NotificationCategory

ISSUE_TYPE_FLAGS = ("bug", "task", "epic", "story", "subtask")

# Higher-volume categories that channels have to opt into.
_OPT_IN_FLAGS = frozenset({"issueState", "issueStatus"})


class JiraMapping(BaseModel):
    """Associates a Jira project, optionally narrowed to a component, with a channel."""

    model_config = ConfigDict(extra="ignore")

    projectId: str
    channel: str
    componentId: Optional[str] = None

    def payload(self) -> dict:
        return self.model_dump(exclude_none=True)


class JiraPreference(BaseModel):
    model_config = ConfigDict(extra="ignore")

    channel: str
    issueCreated: bool = True
    issueDeleted: bool = True
    issueComment: bool = True
    issueStatus: bool = False
    issueState: bool = False
    bug: bool = True
    task: bool = True
    epic: bool = True
    story: bool = True
    subtask: bool = True

    def allows(self, category: NotificationCategory, issue_type: str | None = None) -> bool:
        if not getattr(self, category.value):
            return False
        flag = issue_type_flag(issue_type)
        return True if flag is None else getattr(self, flag)


class PreferenceUpdate(BaseModel):
    """Explicit preference values; omitted fields fall back to the defaults."""

    model_config = ConfigDict(populate_by_name=True)

    issueCreated: Optional[bool] = None
    issueDeleted: Optional[bool] = None
    issueComment: Optional[bool] = Field(default=None, alias="issueCommented")
    issueStatus: Optional[bool] = None
    issueState: Optional[bool] = None
    bug: Optional[bool] = None
    task: Optional[bool] = None
    epic: Optional[bool] = None
    story: Optional[bool] = None
    subtask: Optional[bool] = None


def issue_type_flag(issue_type: str | None) -> str | None:
    """Map a Jira issue type name ("Sub-task", "Bug", ...) to its preference flag."""
    if not issue_type:
        return None
    normalized = issue_type.lower().replace("-", "").replace(" ", "").replace("_", "")
    return normalized if normalized in ISSUE_TYPE_FLAGS else None


def munge_jira_prefs(prefs: dict) -> JiraPreference:
    """Fill in missing preference values.

    Absent (or null) flags are enabled, except the opt-in categories
    ``issueState`` and ``issueStatus`` which stay disabled.
    """
    filled = {"channel": prefs["channel"]}
    for name in JiraPreference.model_fields:
        if name == "channel":
            continue
        value = prefs.get(name)
        filled[name] = (name not in _OPT_IN_FLAGS) if value is None else bool(value)
    return JiraPreference(**filled)


def default_jira_prefs(channel: str) -> JiraPreference:
    return JiraPreference(channel=channel)
