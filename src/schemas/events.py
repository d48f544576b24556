"""Pydantic models for Jira webhook payloads and their classification."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class NotificationCategory(str, Enum):
    ISSUE_CREATED = "issueCreated"
    ISSUE_DELETED = "issueDeleted"
    ISSUE_COMMENT = "issueComment"
    ISSUE_STATUS = "issueStatus"
    ISSUE_STATE = "issueState"


class ChangelogItem(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    field: str
    from_string: Optional[str] = Field(default=None, alias="fromString")
    to_string: Optional[str] = Field(default=None, alias="toString")


class Changelog(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    items: list[ChangelogItem] = Field(default_factory=list)

    def items_for(self, field: str) -> list[ChangelogItem]:
        return [item for item in self.items if item.field == field]


class CommentAuthor(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    display_name: str = Field(default="", alias="displayName")
    name: str = ""


class IssueComment(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: Optional[str] = None
    body: str = ""
    author: Optional[CommentAuthor] = None


class IssueRef(BaseModel):
    """The issue reference carried by every webhook."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    id: str
    key: str
    self_url: str = Field(default="", alias="self")
    # Jira includes the issue fields on webhooks; only deletes rely on them.
    fields: Optional[dict[str, Any]] = None

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value


class IssueEvent(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    webhook_event: str = Field(alias="webhookEvent")
    issue_event_type_name: Optional[str] = None
    issue: IssueRef
    comment: Optional[IssueComment] = None
    changelog: Optional[Changelog] = None
    timestamp: int


# (webhookEvent, issue_event_type_name) -> category; None matches any type name.
_CATEGORY_TABLE: dict[tuple[str, Optional[str]], NotificationCategory] = {
    ("jira:issue_created", "issue_created"): NotificationCategory.ISSUE_CREATED,
    ("jira:issue_deleted", None): NotificationCategory.ISSUE_DELETED,
    ("comment_created", None): NotificationCategory.ISSUE_COMMENT,
    ("jira:issue_updated", "issue_generic"): NotificationCategory.ISSUE_STATUS,
    ("jira:issue_updated", "issue_updated"): NotificationCategory.ISSUE_STATE,
    ("jira:issue_updated", "issue_assigned"): NotificationCategory.ISSUE_STATE,
}


def classify_event(
    webhook_event: str, issue_event_type_name: Optional[str]
) -> NotificationCategory | None:
    """Return the single notification category for this event, or None."""
    exact = _CATEGORY_TABLE.get((webhook_event, issue_event_type_name))
    if exact is not None:
        return exact
    return _CATEGORY_TABLE.get((webhook_event, None))


class WebhookResponse(BaseModel):
    status: str
    category: Optional[str] = None
    message_id: Optional[str] = None
    channels: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
