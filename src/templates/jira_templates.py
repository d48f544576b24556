"""Jira issue field builders (REST API v2, plain-text description)."""

from __future__ import annotations

from src.schemas.commands import CreateComponentRequest, CreateIssueRequest, CreateProjectRequest


def build_issue_fields(request: CreateIssueRequest) -> dict:
    """Build Jira create-issue fields for a chat-initiated issue."""
    fields: dict = {
        "project": {"key": request.project_key},
        "summary": request.summary,
        "description": request.description,
        "issuetype": {"name": request.issue_type},
    }
    if request.component_ids:
        fields["components"] = [{"id": cid} for cid in request.component_ids]
    if request.labels:
        fields["labels"] = request.labels
    if request.assignee:
        fields["assignee"] = {"name": request.assignee}
    return fields


def build_project_payload(request: CreateProjectRequest) -> dict:
    return {
        "key": request.key,
        "name": request.name,
        "lead": request.lead,
        "projectTypeKey": request.project_type_key,
        "description": request.description,
    }


def build_component_payload(request: CreateComponentRequest) -> dict:
    payload = {
        "project": request.project_key,
        "name": request.name,
        "description": request.description,
    }
    if request.lead:
        payload["leadUserName"] = request.lead
    return payload
