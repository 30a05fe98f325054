"""
Configuration management for giteaseed.

Connection and naming settings come from environment variables, optionally
layered over a YAML file. The platform values (tenant teams, self-service
flags, enabled apps) are nested under ``platform_values`` and keep the
camelCase keys used by the platform values file.
"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_FILE = "/etc/giteaseed/config.yaml"


def yaml_config_settings_source() -> dict[str, Any]:
    """Load configuration from the YAML file named by GITEASEED_CONFIG_FILE."""
    config_path = Path(os.environ.get("GITEASEED_CONFIG_FILE", DEFAULT_CONFIG_FILE))
    if config_path.exists():
        with open(config_path) as f:
            return yaml.safe_load(f) or {}
    return {}


# --- Platform values ---


class SelfService(BaseModel):
    """Self-service flags of a tenant team."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    apps: list[str] = Field(default_factory=list, description="Apps the team may administer")


class TeamConfig(BaseModel):
    """Per-tenant configuration from the platform values."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    self_service: SelfService = Field(default_factory=SelfService, alias="selfService")


class AppToggle(BaseModel):
    model_config = ConfigDict(extra="ignore")

    enabled: bool = Field(default=False)


class AppsConfig(BaseModel):
    """Subset of platform apps that influence the Gitea topology."""

    model_config = ConfigDict(extra="ignore")

    argocd: AppToggle = Field(default_factory=AppToggle)


class PlatformValues(BaseModel):
    """Already-validated platform values consumed by the reconciler."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    team_config: dict[str, TeamConfig] = Field(default_factory=dict, alias="teamConfig")
    apps: AppsConfig = Field(default_factory=AppsConfig)

    @property
    def team_ids(self) -> list[str]:
        return list(self.team_config)

    @property
    def has_argocd(self) -> bool:
        return self.apps.argocd.enabled


# --- Main Settings ---


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Gitea
    gitea_url: str = Field(default="http://gitea-http.gitea.svc.cluster.local:3000")
    gitea_username: str = Field(default="otomi-admin")
    gitea_password: str = Field(default="")
    request_timeout_seconds: float = Field(default=30.0)

    # Topology
    org_name: str = Field(default="otomi")
    values_repo_name: str = Field(default="values")
    viewer_team_name: str = Field(default="otomi-viewer")

    # Tekton event listener
    tekton_service_name: str = Field(default="event-listener")
    tekton_namespace: str = Field(default="team-admin")
    tekton_fallback_url: str = Field(
        default="http://el-tekton-listener.team-admin.svc.cluster.local:8080",
        description="Hook target used when the listener service cannot be resolved",
    )

    # Availability wait
    wait_timeout_seconds: float = Field(default=300.0)
    wait_interval_seconds: float = Field(default=5.0)

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool = Field(default=True, description="JSON logging in-cluster")

    platform_values: PlatformValues = Field(default_factory=PlatformValues)

    @property
    def api_url(self) -> str:
        return f"{self.gitea_url.rstrip('/')}/api/v1"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Customize settings sources: env vars override YAML config."""
        return (
            init_settings,
            env_settings,
            yaml_config_settings_source,
            dotenv_settings,
            file_secret_settings,
        )
