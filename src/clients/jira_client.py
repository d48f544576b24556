"""Jira Server REST API v2 client with an optional read-through cache."""

from __future__ import annotations

import base64
import logging
from collections.abc import Awaitable, Callable
from typing import Any
from urllib.parse import quote

import httpx

from src.cache.base import JiraCache
from src.config import JiraConfig
from src.schemas.jira import (
    JiraItemCreated,
    Project,
    SearchResults,
    SelectOption,
)

logger = logging.getLogger(__name__)

# Given an optional caller context, produce the Authorization header.
JiraAuthenticator = Callable[[Any], Awaitable[dict[str, str]]]


class JiraTransportError(RuntimeError):
    """A Jira call failed; carries the upstream status (None on network errors) and body."""

    def __init__(self, url: str, status_code: int | None, body: str) -> None:
        self.url = url
        self.status_code = status_code
        self.body = body
        super().__init__(f"Jira request to {url} failed ({status_code}): {body[:500]}")


def basic_authenticator(config: JiraConfig) -> JiraAuthenticator:
    """Service-account authenticator; ignores the caller context."""
    credentials = base64.b64encode(f"{config.user}:{config.password}".encode()).decode()

    async def _authenticate(_ctx: Any = None) -> dict[str, str]:
        return {"Authorization": f"Basic {credentials}"}

    return _authenticate


class JiraClient:
    """Read and create Jira resources."""

    def __init__(
        self,
        config: JiraConfig,
        cache: JiraCache,
        authenticator: JiraAuthenticator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        self._base_url = config.url
        self._cache = cache
        self._authenticator = authenticator or basic_authenticator(config)
        self._client = httpx.AsyncClient(timeout=15.0, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    def issue_url(self, issue_id: str) -> str:
        return f"{self._base_url}/rest/api/2/issue/{issue_id}"

    def browse_url(self, issue_key: str) -> str:
        return f"{self._base_url}/browse/{issue_key}"

    async def _headers(self, ctx: Any = None, json_body: bool = False) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if json_body:
            headers["Content-Type"] = "application/json"
        headers.update(await self._authenticator(ctx))
        return headers

    async def _request(self, method: str, url: str, ctx: Any = None, payload: Any = None) -> Any:
        try:
            resp = await self._client.request(
                method,
                url,
                json=payload,
                headers=await self._headers(ctx, json_body=payload is not None),
            )
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Jira %s %s failed: (%d) %s",
                method,
                url,
                exc.response.status_code,
                exc.response.text[:500],
            )
            raise JiraTransportError(url, exc.response.status_code, exc.response.text) from exc
        except httpx.RequestError as exc:
            logger.error("Jira %s %s failed: %s", method, url, exc)
            raise JiraTransportError(url, None, str(exc)) from exc
        if not resp.content:
            return None
        return resp.json()

    async def get_details(
        self,
        url: str,
        cacheable: bool = False,
        ttl: int = 3600,
        ctx: Any = None,
    ) -> Any:
        """GET a Jira resource by its full URL.

        With caching enabled in config and ``cacheable`` set, a hit is returned
        without touching the network and a successful miss is stored for ``ttl``
        seconds.
        """
        use_cache = self._config.use_cache and cacheable
        if use_cache:
            cached = await self._cache.get(url)
            if cached is not None:
                logger.debug("Jira get_details %s: cache hit", url)
                return cached
        logger.debug("Jira get_details %s: cache %s, querying", url, "miss" if use_cache else "disabled")

        body = await self._request("GET", url, ctx)
        if use_cache:
            await self._cache.set(url, body, ttl)
        return body

    async def create_resource(
        self,
        api_url: str,
        data: dict,
        update: bool = False,
        ctx: Any = None,
    ) -> JiraItemCreated | None:
        body = await self._request("PUT" if update else "POST", api_url, ctx, payload=data)
        if body is None:
            return None
        logger.info("Jira resource %s at %s", "updated" if update else "created", api_url)
        return JiraItemCreated.model_validate(body)

    async def create_issue(self, fields: dict, ctx: Any = None) -> JiraItemCreated:
        return await self.create_resource(
            f"{self._base_url}/rest/api/2/issue", {"fields": fields}, ctx=ctx
        )

    async def create_project(self, data: dict, ctx: Any = None) -> JiraItemCreated:
        return await self.create_resource(f"{self._base_url}/rest/api/2/project", data, ctx=ctx)

    async def create_component(self, data: dict, ctx: Any = None) -> JiraItemCreated:
        return await self.create_resource(f"{self._base_url}/rest/api/2/component", data, ctx=ctx)

    async def add_comment(self, issue_id: str, body: str, ctx: Any = None) -> dict:
        url = f"{self.issue_url(issue_id)}/comment"
        result = await self._request("POST", url, ctx, payload={"body": body})
        logger.info("Jira comment added to %s", issue_id)
        return result or {}

    async def transition_issue(self, transitions_url: str, transition_id: str, ctx: Any = None) -> None:
        await self._request("POST", transitions_url, ctx, payload={"transition": {"id": transition_id}})
        logger.info("Jira transition %s applied via %s", transition_id, transitions_url)

    async def search_issues(
        self,
        jql: str,
        start_at: int | None = None,
        max_results: int | None = None,
        ctx: Any = None,
    ) -> SearchResults:
        """Run a JQL search. Pagination is left to the caller."""
        url = f"{self._base_url}/rest/api/2/search?jql={quote(jql)}"
        if start_at is not None:
            url += f"&startAt={start_at}"
        if max_results is not None:
            url += f"&maxResults={max_results}"
        return SearchResults.model_validate(await self.get_details(url, ctx=ctx))

    async def prep_project_select(self, search: str, ctx: Any = None) -> list[SelectOption] | None:
        """Projects whose name contains ``search`` (case-insensitive)."""
        projects = await self.get_details(f"{self._base_url}/rest/api/2/project", cacheable=True, ctx=ctx)
        options = [
            SelectOption(description=p.name, value=p.id)
            for p in (Project.model_validate(raw) for raw in projects or [])
            if search.lower() in p.name.lower()
        ]
        return options or None

    async def prep_component_select(self, project: str, ctx: Any = None) -> list[SelectOption] | None:
        detail = Project.model_validate(
            await self.get_details(f"{self._base_url}/rest/api/2/project/{project}", ctx=ctx)
        )
        options = [SelectOption(description=c.name, value=c.id) for c in detail.components if c.id]
        return options or None

    async def get_issue_repos(self, issue_id: str) -> list[str]:
        """Names of the source repositories linked to an issue through commits."""
        lookup_url = (
            f"{self._base_url}/rest/dev-status/latest/issue/detail"
            f"?issueId={issue_id}&applicationType={self._config.vcstype}&dataType=repository"
        )
        data = await self._request("GET", lookup_url) or {}
        repos = [
            repo["name"]
            for detail in data.get("detail") or []
            for repo in detail.get("repositories") or []
            if repo.get("name")
        ]
        if not repos:
            logger.warning("No repos linked to Jira issue %s", issue_id)
        else:
            logger.debug("Repos linked to Jira issue %s: %s", issue_id, repos)
        return repos

    async def close(self) -> None:
        await self._client.aclose()
