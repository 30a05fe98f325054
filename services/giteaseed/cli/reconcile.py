"""
Reconcile the Gitea org, teams, repos and hooks for the platform.

Idempotent: safe to re-run against a partially or fully converged Gitea.
Run via: python -m giteaseed.cli.reconcile

Reads configuration from environment variables (see giteaseed.config):
  GITEA_URL         - Gitea base URL
  GITEA_PASSWORD    - Password of the Gitea admin user
  PLATFORM_VALUES   - JSON platform values (teamConfig, apps, ...)
  GITEASEED_CONFIG_FILE - Optional YAML file with the same keys
"""

import asyncio
import sys

from giteaseed.config import Settings
from giteaseed.gitea.availability import BackendUnavailableError
from giteaseed.logging_config import configure_logging, get_logger
from giteaseed.services.reconciler import run

logger = get_logger("giteaseed.reconcile")


def main() -> None:
    settings = Settings()
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    logger.info("Starting Gitea reconciliation", gitea_url=settings.gitea_url, org=settings.org_name)

    try:
        errors = asyncio.run(run(settings))
    except BackendUnavailableError as e:
        logger.error("Gitea is not available", error=str(e))
        sys.exit(1)

    if errors:
        print(f"Errors found: {errors.to_json()}", file=sys.stderr)
        sys.exit(1)

    print("Success!")


if __name__ == "__main__":
    main()
