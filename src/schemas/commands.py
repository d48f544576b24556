"""Request and response bodies for the chat command endpoints."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from src.schemas.jira import SelectOption
from src.schemas.preferences import JiraMapping


class ProjectMappingRequest(BaseModel):
    channel: str = Field(min_length=1)
    project_id: str = Field(min_length=1)


class ComponentMappingRequest(ProjectMappingRequest):
    component_id: str = Field(min_length=1)


class RepoChannelsRequest(BaseModel):
    channels: list[str] = Field(min_length=1)


class CreateIssueRequest(BaseModel):
    project_key: str = Field(min_length=1)
    summary: str = Field(min_length=1)
    description: str = ""
    issue_type: str = "Task"
    component_ids: list[str] = Field(default_factory=list)
    labels: list[str] = Field(default_factory=list)
    assignee: Optional[str] = None


class CommentRequest(BaseModel):
    body: str = Field(min_length=1)


class TransitionRequest(BaseModel):
    transition_id: str = Field(min_length=1)


class CommandResponse(BaseModel):
    status: Literal["ok", "not_found"] = "ok"
    message: str = ""


class MappingsResponse(BaseModel):
    channel: str
    mappings: list[JiraMapping] = Field(default_factory=list)


class OptionsResponse(BaseModel):
    options: list[SelectOption] = Field(default_factory=list)


class CreateProjectRequest(BaseModel):
    key: str = Field(min_length=1, max_length=10, pattern=r"^[A-Z][A-Z0-9]*$")
    name: str = Field(min_length=1)
    lead: str = Field(min_length=1)
    project_type_key: str = "software"
    description: str = ""


class CreateComponentRequest(BaseModel):
    project_key: str = Field(min_length=1)
    name: str = Field(min_length=1)
    description: str = ""
    lead: Optional[str] = None
