"""Typed errors raised by the current-environment backfill."""

from typing import Optional, Sequence


class BackfillError(RuntimeError):
    """Base class for backfill failures. Always fatal for the run."""


class NoDefaultEnvironmentError(BackfillError):
    """Raised when an organization has no environment flagged as default."""

    def __init__(self, organization_id: int):
        self.organization_id = organization_id
        super().__init__(f"Organization {organization_id} has no default environment")


class BackfillWriteError(BackfillError):
    """Raised when the store rejects an update or does not confirm it."""

    def __init__(
        self,
        version_ids: Sequence[int],
        environment_id: int,
        reason: Optional[str] = None,
    ):
        self.version_ids = list(version_ids)
        self.environment_id = environment_id
        message = (
            f"Failed to set current_environment_id={environment_id} "
            f"on app version(s) {self.version_ids}"
        )
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
