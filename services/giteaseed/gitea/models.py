"""Typed records for the Gitea v1 API payloads the reconciler sends and reads.

Option models are what we send; Team/Repository/Hook are validated views of
what the backend returns. Unknown response fields are ignored.
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Permission(StrEnum):
    """Team permission tiers, ordered READ < WRITE < ADMIN."""

    READ = "read"
    WRITE = "write"
    ADMIN = "admin"

    @property
    def rank(self) -> int:
        return _PERMISSION_ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Permission):
            return NotImplemented
        return self.rank >= other.rank


_PERMISSION_ORDER = (Permission.READ, Permission.WRITE, Permission.ADMIN)


class HookType(StrEnum):
    GITEA = "gitea"


# --- Options (request bodies) ---


class CreateOrgOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str
    repo_admin_change_team_access: bool = True


class TeamOption(BaseModel):
    """Desired team definition, used for both create and edit."""

    model_config = ConfigDict(frozen=True)

    name: str
    permission: Permission
    includes_all_repositories: bool = False
    can_create_org_repo: bool = False
    units: tuple[str, ...] = ("repo.code",)

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


class RepoOption(BaseModel):
    """Desired repository definition.

    ``auto_init`` only applies on create; the edit payload omits it.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    private: bool = True
    auto_init: bool = False

    def create_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")

    def edit_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude={"auto_init"})


class HookConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    url: str = ""
    http_method: str = "post"
    content_type: str = "json"


class CreateHookOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: HookType = HookType.GITEA
    config: HookConfig
    events: tuple[str, ...] = ("push",)
    active: bool = True

    def payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json")


# --- Backend results ---


class Team(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    # Not a Permission: the built-in Owners team reports "owner"
    permission: str = ""
    includes_all_repositories: bool = False
    can_create_org_repo: bool = False
    units: list[str] = Field(default_factory=list)


class Repository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    full_name: str = ""
    private: bool = False


class Hook(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    type: str = ""
    config: HookConfig | None = None
    events: list[str] = Field(default_factory=list)
    active: bool = False

    @property
    def url(self) -> str:
        return self.config.url if self.config else ""
