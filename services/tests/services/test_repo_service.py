"""Tests for repository option builders and repo upserts."""

from unittest.mock import AsyncMock

import pytest

from giteaseed.gitea.client import GiteaApiError
from giteaseed.gitea.models import Repository
from giteaseed.services.api_call import ErrorLog
from giteaseed.services.repo_service import (
    companion_repo_option,
    upsert_repo,
    values_repo_option,
)


def test_values_repo_is_private_without_auto_init():
    repo = values_repo_option("values")
    assert repo.name == "values"
    assert repo.private is True
    assert repo.auto_init is False


def test_companion_repo_naming():
    repo = companion_repo_option("a")
    assert repo.name == "team-a-argocd"
    assert repo.private is True
    assert repo.auto_init is True


class TestUpsertRepo:
    async def test_creates_when_absent(self):
        client = AsyncMock()
        repo = values_repo_option("values")

        await upsert_repo(client, ErrorLog(), "otomi", [], repo)

        client.create_org_repo.assert_awaited_once_with("otomi", repo)
        client.edit_repo.assert_not_awaited()

    async def test_edits_when_present(self):
        client = AsyncMock()
        repo = values_repo_option("values")

        await upsert_repo(client, ErrorLog(), "otomi", [Repository(id=2, name="values")], repo)

        client.edit_repo.assert_awaited_once_with("otomi", "values", repo)
        client.create_org_repo.assert_not_awaited()

    async def test_no_team_means_no_bind(self):
        client = AsyncMock()
        await upsert_repo(client, ErrorLog(), "otomi", [], values_repo_option("values"))
        client.add_repo_team.assert_not_awaited()

    @pytest.mark.parametrize("existing", [[], [Repository(id=2, name="team-a-argocd")]])
    async def test_binds_team_on_either_branch(self, existing):
        client = AsyncMock()

        await upsert_repo(client, ErrorLog(), "otomi", existing, companion_repo_option("a"), "team-a")

        client.add_repo_team.assert_awaited_once_with("otomi", "team-a-argocd", "team-a")

    async def test_binds_even_when_create_fails(self):
        client = AsyncMock()
        client.create_org_repo.side_effect = GiteaApiError(500, "boom")
        errors = ErrorLog()

        await upsert_repo(client, errors, "otomi", [], companion_repo_option("a"), "team-a")

        client.add_repo_team.assert_awaited_once()
        assert list(errors) == ['Creating repo "team-a-argocd" in org "otomi": 500 boom']

    async def test_already_bound_is_tolerated(self):
        client = AsyncMock()
        client.create_org_repo.side_effect = GiteaApiError(422, "repository already exists")
        client.add_repo_team.side_effect = GiteaApiError(422, "team already has access")
        errors = ErrorLog()

        await upsert_repo(client, errors, "otomi", [], companion_repo_option("a"), "team-a")

        assert not errors

    async def test_bind_failure_is_recorded(self):
        client = AsyncMock()
        client.add_repo_team.side_effect = GiteaApiError(404, "team not found")
        errors = ErrorLog()

        await upsert_repo(client, errors, "otomi", [], companion_repo_option("a"), "team-a")

        assert list(errors) == ['Adding repo "team-a-argocd" to team "team-a": 404 team not found']
