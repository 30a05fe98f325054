"""
Top-level test configuration for giteaseed.

Provides an in-memory Gitea backend served through httpx.MockTransport so
reconciliation can be exercised end to end without a real server.
"""

import json
import os
import re
from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest

# Ensure test-friendly defaults
os.environ.setdefault("JSON_LOGS", "false")
os.environ.setdefault("LOG_LEVEL", "DEBUG")
os.environ.setdefault("GITEASEED_CONFIG_FILE", "/nonexistent/giteaseed.yaml")

from giteaseed.gitea.client import GiteaClient  # noqa: E402

API_PREFIX = "/api/v1"


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"message": message})


class FakeGitea:
    """Stateful stand-in for the subset of the Gitea API we call.

    Mirrors Gitea's answers for duplicates: creating an existing org, team
    or repo and re-adding a team to a repo answer 422.
    """

    def __init__(self) -> None:
        self.orgs: set[str] = set()
        self.teams: dict[str, dict[str, Any]] = {}
        self.repos: dict[str, dict[str, Any]] = {}
        self.repo_teams: set[tuple[str, str]] = set()
        self.hooks: dict[str, list[dict[str, Any]]] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[tuple[str, str], tuple[int, str]] = {}
        self._next_id = 1

    def _id(self) -> int:
        self._next_id += 1
        return self._next_id

    def fail(self, method: str, path: str, status: int, message: str = "boom") -> None:
        """Make ``method path`` answer ``status`` regardless of state."""
        self.failures[(method, path)] = (status, message)

    def mutating_calls(self) -> list[tuple[str, str]]:
        return [c for c in self.calls if c[0] != "GET"]

    @staticmethod
    def _page(items: list[dict[str, Any]], request: httpx.Request) -> httpx.Response:
        page = int(request.url.params.get("page", "1"))
        limit = int(request.url.params.get("limit", "30"))
        start = (page - 1) * limit
        return httpx.Response(200, json=items[start : start + limit])

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix(API_PREFIX)
        method = request.method
        self.calls.append((method, path))

        if (method, path) in self.failures:
            status, message = self.failures[(method, path)]
            return _error(status, message)

        data = json.loads(request.content) if request.content else {}

        if method == "POST" and path == "/orgs":
            if data["username"] in self.orgs:
                return _error(422, "user already exists")
            self.orgs.add(data["username"])
            return httpx.Response(201, json={"id": self._id(), "username": data["username"]})

        if m := re.fullmatch(r"/orgs/([^/]+)/teams", path):
            if m.group(1) not in self.orgs:
                return _error(404, "org not found")
            if method == "GET":
                return self._page(list(self.teams.values()), request)
            if data["name"] in self.teams:
                return _error(422, "team already exists")
            team = {"id": self._id(), **data}
            self.teams[data["name"]] = team
            return httpx.Response(201, json=team)

        if m := re.fullmatch(r"/teams/(\d+)", path):
            team = next((t for t in self.teams.values() if t["id"] == int(m.group(1))), None)
            if team is None:
                return _error(404, "team not found")
            team.update(data)
            return httpx.Response(200, json=team)

        if m := re.fullmatch(r"/orgs/([^/]+)/repos", path):
            if m.group(1) not in self.orgs:
                return _error(404, "org not found")
            if method == "GET":
                return self._page(list(self.repos.values()), request)
            if data["name"] in self.repos:
                return _error(422, "repository already exists")
            repo = {"id": self._id(), "full_name": f"{m.group(1)}/{data['name']}", **data}
            self.repos[data["name"]] = repo
            return httpx.Response(201, json=repo)

        if m := re.fullmatch(r"/repos/([^/]+)/([^/]+)/teams/([^/]+)", path):
            repo, team = m.group(2), m.group(3)
            if repo not in self.repos or team not in self.teams:
                return _error(404, "not found")
            if (repo, team) in self.repo_teams:
                return _error(422, "team already has access")
            self.repo_teams.add((repo, team))
            return httpx.Response(204)

        if m := re.fullmatch(r"/repos/([^/]+)/([^/]+)/hooks", path):
            repo = m.group(2)
            if repo not in self.repos:
                return _error(404, "repo not found")
            hooks = self.hooks.setdefault(repo, [])
            if method == "GET":
                return self._page(hooks, request)
            hook = {"id": self._id(), **data}
            hooks.append(hook)
            return httpx.Response(201, json=hook)

        if m := re.fullmatch(r"/repos/([^/]+)/([^/]+)", path):
            repo = self.repos.get(m.group(2))
            if repo is None:
                return _error(404, "repo not found")
            repo.update(data)
            return httpx.Response(200, json=repo)

        return _error(404, f"no route for {method} {path}")


@pytest.fixture
def fake_gitea() -> FakeGitea:
    return FakeGitea()


@pytest.fixture
async def gitea_client(fake_gitea: FakeGitea) -> AsyncIterator[GiteaClient]:
    async with GiteaClient(
        f"http://gitea.test{API_PREFIX}",
        "otomi-admin",
        "secret",
        transport=httpx.MockTransport(fake_gitea.handler),
    ) as client:
        yield client
