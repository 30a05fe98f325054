"""Repository reconciliation.

Repositories are created at org scope or edited in place, then optionally
bound to a team. Binding is idempotent on the Gitea side, so it is always
attempted when a team is given.
"""

from giteaseed.gitea.client import GiteaClient
from giteaseed.gitea.models import RepoOption, Repository
from giteaseed.logging_config import get_logger
from giteaseed.services.api_call import ErrorLog, api_call
from giteaseed.services.team_service import tenant_team_name

logger = get_logger(__name__)


def values_repo_option(name: str) -> RepoOption:
    return RepoOption(name=name, private=True, auto_init=False)


def companion_repo_option(team_id: str) -> RepoOption:
    """Per-tenant GitOps repository used by Argo CD."""
    return RepoOption(name=f"{tenant_team_name(team_id)}-argocd", private=True, auto_init=True)


async def add_repo_to_team(
    client: GiteaClient, errors: ErrorLog, org: str, repo_name: str, team_name: str
) -> None:
    await api_call(
        errors,
        f'Adding repo "{repo_name}" to team "{team_name}"',
        lambda: client.add_repo_team(org, repo_name, team_name),
        422,
    )


async def upsert_repo(
    client: GiteaClient,
    errors: ErrorLog,
    org: str,
    existing_repos: list[Repository] | None,
    repo: RepoOption,
    team_name: str | None = None,
) -> None:
    existing = next((r for r in existing_repos or [] if r.name == repo.name), None)

    if existing is None:
        logger.debug("Creating repo", repo=repo.name, org=org)
        await api_call(
            errors,
            f'Creating repo "{repo.name}" in org "{org}"',
            lambda: client.create_org_repo(org, repo),
            422,
        )
    else:
        logger.debug("Editing repo", repo=repo.name, org=org)
        await api_call(
            errors,
            f'Updating repo "{repo.name}" in org "{org}"',
            lambda: client.edit_repo(org, repo.name, repo),
            422,
        )

    if team_name:
        await add_repo_to_team(client, errors, org, repo.name, team_name)
