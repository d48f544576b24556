"""Chat command routes: channel mappings, preferences and issue actions.

Every command answers synchronously; a failing Jira call is reported to the
caller as a 502 carrying the upstream status.
"""

from fastapi import APIRouter, Depends, HTTPException, Query

from src.clients.jira_client import JiraTransportError
from src.context import JiraContext, StoreRepoChannelLookup
from src.handlers.mappings import (
    get_current_channel_mappings,
    map_component_to_channel,
    map_project_to_channel,
    remove_component_map_from_channel,
    remove_project_map_from_channel,
)
from src.handlers.preferences import query_jira_channel_prefs, set_jira_channel_prefs
from src.routes.dependencies import get_jira_context
from src.schemas.commands import (
    CommandResponse,
    CommentRequest,
    CreateComponentRequest,
    ComponentMappingRequest,
    CreateIssueRequest,
    CreateProjectRequest,
    MappingsResponse,
    OptionsResponse,
    ProjectMappingRequest,
    RepoChannelsRequest,
    TransitionRequest,
)
from src.schemas.jira import JiraItemCreated, SearchResults
from src.schemas.preferences import JiraPreference, PreferenceUpdate
from src.templates.jira_templates import build_component_payload, build_issue_fields, build_project_payload

router = APIRouter(prefix="/jira", tags=["jira"])


def _jira_failure(exc: JiraTransportError) -> HTTPException:
    return HTTPException(
        status_code=502,
        detail={"message": "Jira request failed", "upstream_status": exc.status_code, "body": exc.body[:500]},
    )


@router.post("/mappings/project", response_model=CommandResponse)
async def map_project(
    request: ProjectMappingRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    await map_project_to_channel(ctx, request.channel, request.project_id)
    return CommandResponse(message=f"Mapped project {request.project_id} to {request.channel}")


@router.delete("/mappings/project", response_model=CommandResponse)
async def unmap_project(
    request: ProjectMappingRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    if not await remove_project_map_from_channel(ctx, request.channel, request.project_id):
        return CommandResponse(status="not_found", message="No such project mapping")
    return CommandResponse(message=f"Removed project {request.project_id} from {request.channel}")


@router.post("/mappings/component", response_model=CommandResponse)
async def map_component(
    request: ComponentMappingRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    await map_component_to_channel(ctx, request.channel, request.project_id, request.component_id)
    return CommandResponse(message=f"Mapped component {request.component_id} to {request.channel}")


@router.delete("/mappings/component", response_model=CommandResponse)
async def unmap_component(
    request: ComponentMappingRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    removed = await remove_component_map_from_channel(
        ctx, request.channel, request.project_id, request.component_id
    )
    if not removed:
        return CommandResponse(status="not_found", message="No such component mapping")
    return CommandResponse(message=f"Removed component {request.component_id} from {request.channel}")


@router.get("/mappings/{channel}", response_model=MappingsResponse)
async def current_mappings(channel: str, ctx: JiraContext = Depends(get_jira_context)) -> MappingsResponse:
    return MappingsResponse(channel=channel, mappings=await get_current_channel_mappings(ctx, channel))


@router.put("/preferences/{channel}", response_model=JiraPreference)
async def set_preferences(
    channel: str,
    update: PreferenceUpdate,
    ctx: JiraContext = Depends(get_jira_context),
) -> JiraPreference:
    return await set_jira_channel_prefs(ctx, channel, update)


@router.get("/preferences/{channel}", response_model=JiraPreference)
async def get_preferences(channel: str, ctx: JiraContext = Depends(get_jira_context)) -> JiraPreference:
    return await query_jira_channel_prefs(ctx, channel)


@router.put("/repos/{repo}/channels", response_model=CommandResponse)
async def link_repo_channels(
    repo: str,
    request: RepoChannelsRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    await StoreRepoChannelLookup(ctx.store, ctx.workspace_id).link(repo, request.channels)
    return CommandResponse(message=f"Linked {repo} to {', '.join(sorted(set(request.channels)))}")


@router.get("/projects", response_model=OptionsResponse)
async def find_projects(
    search: str = Query(default="", max_length=200),
    ctx: JiraContext = Depends(get_jira_context),
) -> OptionsResponse:
    try:
        options = await ctx.jira.prep_project_select(search)
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc
    return OptionsResponse(options=options or [])


@router.post("/projects", response_model=JiraItemCreated)
async def create_project(
    request: CreateProjectRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> JiraItemCreated:
    try:
        return await ctx.jira.create_project(build_project_payload(request))
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc


@router.post("/components", response_model=JiraItemCreated)
async def create_component(
    request: CreateComponentRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> JiraItemCreated:
    try:
        return await ctx.jira.create_component(build_component_payload(request))
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc


@router.get("/projects/{project}/components", response_model=OptionsResponse)
async def project_components(project: str, ctx: JiraContext = Depends(get_jira_context)) -> OptionsResponse:
    try:
        options = await ctx.jira.prep_component_select(project)
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc
    return OptionsResponse(options=options or [])


@router.get("/issues", response_model=SearchResults)
async def search_issues(
    jql: str = Query(min_length=1),
    start_at: int | None = Query(default=None, ge=0),
    max_results: int | None = Query(default=None, ge=1, le=1000),
    ctx: JiraContext = Depends(get_jira_context),
) -> SearchResults:
    try:
        return await ctx.jira.search_issues(jql, start_at, max_results)
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc


@router.post("/issues", response_model=JiraItemCreated)
async def create_issue(
    request: CreateIssueRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> JiraItemCreated:
    try:
        return await ctx.jira.create_issue(build_issue_fields(request))
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc


@router.post("/issues/{issue_id}/comments", response_model=CommandResponse)
async def comment_on_issue(
    issue_id: str,
    request: CommentRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    try:
        await ctx.jira.add_comment(issue_id, request.body)
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc
    return CommandResponse(message=f"Commented on issue {issue_id}")


@router.post("/issues/{issue_id}/transitions", response_model=CommandResponse)
async def set_issue_status(
    issue_id: str,
    request: TransitionRequest,
    ctx: JiraContext = Depends(get_jira_context),
) -> CommandResponse:
    try:
        await ctx.jira.transition_issue(f"{ctx.jira.issue_url(issue_id)}/transitions", request.transition_id)
    except JiraTransportError as exc:
        raise _jira_failure(exc) from exc
    return CommandResponse(message=f"Applied transition {request.transition_id} to issue {issue_id}")
