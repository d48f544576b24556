"""Jira REST API v2 resources the router reads."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _JiraModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class NamedRef(_JiraModel):
    id: Optional[str] = None
    name: str = ""


class JiraUser(_JiraModel):
    name: str = ""
    display_name: str = Field(default="", alias="displayName")


class ProjectRef(_JiraModel):
    id: str
    key: str = ""
    name: str = ""


class IssueFields(_JiraModel):
    summary: str = ""
    description: Optional[str] = None
    status: Optional[NamedRef] = None
    assignee: Optional[JiraUser] = None
    reporter: Optional[JiraUser] = None
    project: Optional[ProjectRef] = None
    components: list[NamedRef] = Field(default_factory=list)
    issuetype: Optional[NamedRef] = None
    priority: Optional[NamedRef] = None


class IssueDetail(_JiraModel):
    id: str
    key: str
    self_url: str = Field(default="", alias="self")
    fields: IssueFields = Field(default_factory=IssueFields)

    @property
    def issue_type(self) -> str | None:
        return self.fields.issuetype.name if self.fields.issuetype else None

    @property
    def component_ids(self) -> list[str]:
        return [c.id for c in self.fields.components if c.id]


class Transition(_JiraModel):
    id: str
    name: str


class JiraIssueTransitions(_JiraModel):
    transitions: list[Transition] = Field(default_factory=list)


class Project(_JiraModel):
    id: str
    key: str = ""
    name: str = ""
    components: list[NamedRef] = Field(default_factory=list)


class JiraItemCreated(_JiraModel):
    id: str
    key: str = ""
    self_url: str = Field(default="", alias="self")

    # Project creation answers with a numeric id.
    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value: object) -> object:
        return str(value) if isinstance(value, int) else value


class SearchResults(_JiraModel):
    issues: list[IssueDetail] = Field(default_factory=list)
    start_at: int = Field(default=0, alias="startAt")
    max_results: int = Field(default=0, alias="maxResults")
    total: int = 0


class SelectOption(BaseModel):
    description: str
    value: str
