"""End-to-end Gitea reconciliation.

Sequence:
1. Wait for Gitea to answer
2. Create the org
3. List existing teams
4. Upsert every tenant team (concurrently)
5. Upsert the org wide viewer team
6. List existing repos
7. Upsert the values repo
8. Bind the values repo to the viewer team
9. Install the Tekton hook on the values repo
10. Stop here unless Argo CD is enabled
11. Upsert one GitOps repo per tenant, bound to its team (concurrently)

The caller inspects the returned ErrorLog to decide the run's outcome.
"""

import asyncio
from collections.abc import Awaitable, Callable

from giteaseed.config import PlatformValues, Settings
from giteaseed.gitea.availability import wait_till_available
from giteaseed.gitea.client import GiteaClient
from giteaseed.gitea.models import CreateOrgOption
from giteaseed.k8s import get_service_address
from giteaseed.logging_config import get_logger
from giteaseed.services.api_call import ErrorLog, api_call
from giteaseed.services.hook_service import AddressResolver, add_hook
from giteaseed.services.repo_service import (
    add_repo_to_team,
    companion_repo_option,
    upsert_repo,
    values_repo_option,
)
from giteaseed.services.team_service import (
    read_only_team,
    tenant_team_name,
    tenant_team_option,
    upsert_team,
)

logger = get_logger(__name__)


async def _fan_out(
    errors: ErrorLog,
    team_ids: list[str],
    branch: Callable[[str, ErrorLog], Awaitable[None]],
) -> None:
    """Run ``branch`` for every tenant concurrently and merge their error logs."""
    branch_logs = [ErrorLog() for _ in team_ids]
    await asyncio.gather(
        *(branch(team_id, log) for team_id, log in zip(team_ids, branch_logs, strict=True))
    )
    for log in branch_logs:
        errors.extend(log)


async def reconcile(
    client: GiteaClient,
    settings: Settings,
    values: PlatformValues,
    resolve_address: AddressResolver = get_service_address,
) -> ErrorLog:
    """Converge the Gitea org towards the desired topology.

    Never raises for backend failures; they are returned in the ErrorLog.
    """
    errors = ErrorLog()
    org = settings.org_name
    team_ids = values.team_ids

    await api_call(
        errors,
        f'Creating org "{org}"',
        lambda: client.create_org(CreateOrgOption(username=org, repo_admin_change_team_access=True)),
        422,
    )

    existing_teams = await api_call(
        errors, f'Getting all teams in org "{org}"', lambda: client.list_org_teams(org)
    )

    async def team_branch(team_id: str, branch_errors: ErrorLog) -> None:
        option = tenant_team_option(team_id, values.team_config.get(team_id))
        await upsert_team(client, branch_errors, org, existing_teams, option)

    await _fan_out(errors, team_ids, team_branch)
    logger.info("Reconciled tenant teams", org=org, teams=len(team_ids))

    await upsert_team(client, errors, org, existing_teams, read_only_team(settings.viewer_team_name))

    existing_repos = await api_call(
        errors, f'Getting all repos in org "{org}"', lambda: client.list_org_repos(org)
    )

    values_repo = values_repo_option(settings.values_repo_name)
    await upsert_repo(client, errors, org, existing_repos, values_repo)
    await add_repo_to_team(client, errors, org, values_repo.name, settings.viewer_team_name)

    await add_hook(
        client,
        errors,
        org,
        values_repo.name,
        settings.tekton_service_name,
        settings.tekton_namespace,
        settings.tekton_fallback_url,
        resolve_address,
    )

    if not values.has_argocd:
        logger.info("Argo CD disabled, skipping team GitOps repos")
        return errors

    async def repo_branch(team_id: str, branch_errors: ErrorLog) -> None:
        await upsert_repo(
            client,
            branch_errors,
            org,
            existing_repos,
            companion_repo_option(team_id),
            tenant_team_name(team_id),
        )

    await _fan_out(errors, team_ids, repo_branch)
    logger.info("Reconciled team GitOps repos", org=org, repos=len(team_ids))

    return errors


async def run(settings: Settings, resolve_address: AddressResolver = get_service_address) -> ErrorLog:
    """Wait for Gitea, then reconcile with a client scoped to the run.

    BackendUnavailableError from the wait propagates; it is fatal.
    """
    await wait_till_available(
        settings.gitea_url,
        timeout_seconds=settings.wait_timeout_seconds,
        interval_seconds=settings.wait_interval_seconds,
        request_timeout_seconds=settings.request_timeout_seconds,
    )

    async with GiteaClient(
        settings.api_url,
        settings.gitea_username,
        settings.gitea_password,
        timeout=settings.request_timeout_seconds,
    ) as client:
        return await reconcile(client, settings, settings.platform_values, resolve_address)
