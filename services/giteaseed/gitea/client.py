"""Gitea v1 REST client.

Thin async wrapper over httpx covering the organization, team, repository
and webhook operations the reconciler needs. Every non-2xx response raises
GiteaApiError carrying the status code; callers decide which statuses are
expected.
"""

from collections.abc import Callable
from typing import Any, TypeVar
from urllib.parse import quote as url_quote

import httpx
from pydantic import BaseModel

from giteaseed.gitea.models import (
    CreateHookOption,
    CreateOrgOption,
    Hook,
    RepoOption,
    Repository,
    Team,
    TeamOption,
)
from giteaseed.logging_config import get_logger

logger = get_logger(__name__)

PAGE_SIZE = 50

ModelT = TypeVar("ModelT", bound=BaseModel)


class GiteaApiError(Exception):
    """A Gitea API call answered with a non-success status."""

    def __init__(self, status_code: int, detail: str, method: str = "", url: str = "") -> None:
        self.status_code = status_code
        self.detail = detail
        self.method = method
        self.url = url
        super().__init__(f"{status_code} {detail}")

    @classmethod
    def from_response(cls, resp: httpx.Response) -> "GiteaApiError":
        detail = resp.text
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            detail = str(body["message"])
        return cls(resp.status_code, detail, resp.request.method, str(resp.request.url))


def _parse(model: type[ModelT], data: Any) -> ModelT | None:
    return model.model_validate(data) if data else None


def _seg(value: str) -> str:
    return url_quote(value, safe="")


class GiteaClient:
    """Authenticated client for one Gitea instance.

    Use as an async context manager, or call ``aclose()`` when done.
    """

    def __init__(
        self,
        api_url: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.api_url,
            auth=httpx.BasicAuth(username, password),
            headers={"Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "GiteaClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        resp = await self._client.request(method, path, json=json, params=params)
        if not resp.is_success:
            raise GiteaApiError.from_response(resp)
        if resp.status_code == 204 or not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise GiteaApiError(
                resp.status_code, "invalid JSON body", resp.request.method, str(resp.request.url)
            ) from e

    async def _list(self, path: str, parse: Callable[[dict[str, Any]], ModelT]) -> list[ModelT]:
        """Collect every page of a list endpoint."""
        items: list[ModelT] = []
        page = 1
        while True:
            batch = await self._request("GET", path, params={"page": page, "limit": PAGE_SIZE})
            batch = batch or []
            if not isinstance(batch, list):
                raise GiteaApiError(200, f"expected a JSON list, got {type(batch).__name__}", "GET", path)
            items.extend(parse(item) for item in batch)
            if len(batch) < PAGE_SIZE:
                break
            page += 1
        return items

    # --- Organizations ---

    async def create_org(self, option: CreateOrgOption) -> dict[str, Any] | None:
        return await self._request("POST", "/orgs", json=option.model_dump(mode="json"))

    # --- Teams ---

    async def list_org_teams(self, org: str) -> list[Team]:
        return await self._list(f"/orgs/{_seg(org)}/teams", Team.model_validate)

    async def create_team(self, org: str, option: TeamOption) -> Team | None:
        data = await self._request("POST", f"/orgs/{_seg(org)}/teams", json=option.payload())
        return _parse(Team, data)

    async def edit_team(self, team_id: int, option: TeamOption) -> Team | None:
        data = await self._request("PATCH", f"/teams/{team_id}", json=option.payload())
        return _parse(Team, data)

    # --- Repositories ---

    async def list_org_repos(self, org: str) -> list[Repository]:
        return await self._list(f"/orgs/{_seg(org)}/repos", Repository.model_validate)

    async def create_org_repo(self, org: str, option: RepoOption) -> Repository | None:
        data = await self._request(
            "POST", f"/orgs/{_seg(org)}/repos", json=option.create_payload()
        )
        return _parse(Repository, data)

    async def edit_repo(self, owner: str, repo: str, option: RepoOption) -> Repository | None:
        data = await self._request(
            "PATCH", f"/repos/{_seg(owner)}/{_seg(repo)}", json=option.edit_payload()
        )
        return _parse(Repository, data)

    async def add_repo_team(self, owner: str, repo: str, team: str) -> None:
        await self._request("PUT", f"/repos/{_seg(owner)}/{_seg(repo)}/teams/{_seg(team)}")

    # --- Hooks ---

    async def list_hooks(self, owner: str, repo: str) -> list[Hook]:
        return await self._list(f"/repos/{_seg(owner)}/{_seg(repo)}/hooks", Hook.model_validate)

    async def create_hook(self, owner: str, repo: str, option: CreateHookOption) -> Hook | None:
        data = await self._request(
            "POST", f"/repos/{_seg(owner)}/{_seg(repo)}/hooks", json=option.payload()
        )
        logger.debug("Created hook", repo=f"{owner}/{repo}", url=option.config.url)
        return _parse(Hook, data)
