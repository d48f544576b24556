"""Outbound chat notification handed to the delivery client."""

from typing import Literal

from pydantic import BaseModel, Field


class MessageOptions(BaseModel):
    # Stable identity; a redelivered webhook maps onto the same message.
    id: str
    # Events of different categories may share an id (same issue, same timestamp).
    category: str = ""
    post: Literal["always", "update_only"] = "always"


class Notification(BaseModel):
    text: str
    blocks: list[dict] = Field(default_factory=list)
    channels: list[str] = Field(default_factory=list)
    options: MessageOptions
