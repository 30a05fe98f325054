"""Team reconciliation and the team permission templates.

Tenant teams get the admin template when their self-service config lists
Gitea, the editor template otherwise. The viewer team is org wide and
read-only.
"""

from giteaseed.config import TeamConfig
from giteaseed.gitea.client import GiteaClient
from giteaseed.gitea.models import Permission, Team, TeamOption
from giteaseed.logging_config import get_logger
from giteaseed.services.api_call import ErrorLog, api_call

logger = get_logger(__name__)

SELF_SERVICE_APP = "gitea"
TEAM_UNITS = ("repo.code",)


def read_only_team(name: str) -> TeamOption:
    return TeamOption(
        name=name,
        permission=Permission.READ,
        includes_all_repositories=True,
        can_create_org_repo=False,
        units=TEAM_UNITS,
    )


def editor_team(name: str) -> TeamOption:
    return TeamOption(
        name=name,
        permission=Permission.WRITE,
        includes_all_repositories=False,
        can_create_org_repo=False,
        units=TEAM_UNITS,
    )


def admin_team(name: str) -> TeamOption:
    return TeamOption(
        name=name,
        permission=Permission.ADMIN,
        includes_all_repositories=False,
        can_create_org_repo=False,
        units=TEAM_UNITS,
    )


def tenant_team_name(team_id: str) -> str:
    return f"team-{team_id}"


def tenant_team_option(team_id: str, team_config: TeamConfig | None) -> TeamOption:
    """Derive a tenant team's definition from its self-service flags."""
    name = tenant_team_name(team_id)
    apps = team_config.self_service.apps if team_config else []
    if SELF_SERVICE_APP in apps:
        return admin_team(name)
    return editor_team(name)


async def upsert_team(
    client: GiteaClient,
    errors: ErrorLog,
    org: str,
    existing_teams: list[Team] | None,
    team: TeamOption,
) -> None:
    """Edit the team if one with the same name exists, create it otherwise."""
    existing = next((t for t in existing_teams or [] if t.name == team.name), None)

    if existing is not None:
        logger.debug("Editing team", team=team.name, team_id=existing.id)
        await api_call(
            errors,
            f'Updating team "{team.name}" in org "{org}"',
            lambda: client.edit_team(existing.id, team),
            422,
        )
        return

    logger.debug("Creating team", team=team.name, permission=str(team.permission))
    await api_call(
        errors,
        f'Creating team "{team.name}" in org "{org}"',
        lambda: client.create_team(org, team),
        422,
    )
