"""Default environment selection for one organization."""

from typing import Iterable

from loguru import logger

from env_backfill.backfill.errors import NoDefaultEnvironmentError
from env_backfill.models import AppEnvironment


def resolve_default_environment(
    organization_id: int, environments: Iterable[AppEnvironment]
) -> AppEnvironment:
    """Select the environment flagged as the organization's default.

    Works purely on the already-loaded environments; no database access.

    When more than one environment is flagged, the one with the lowest id wins
    so the result does not depend on load order.

    Args:
        organization_id: Owner of the environments, used for errors and logging
        environments: All environments of that organization

    Returns:
        The default environment

    Raises:
        NoDefaultEnvironmentError: If no environment is flagged as default
    """
    candidates = sorted(
        (environment for environment in environments if environment.is_default),
        key=lambda environment: environment.id,
    )

    if not candidates:
        raise NoDefaultEnvironmentError(organization_id)

    if len(candidates) > 1:
        logger.warning(
            f"Organization {organization_id} has {len(candidates)} default environments "
            f"{[environment.id for environment in candidates]}, using {candidates[0].id}"
        )

    return candidates[0]
