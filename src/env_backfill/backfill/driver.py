"""Backfill of app_version.current_environment_id.

The run happens in two phases inside the caller's transaction:

1. Plan: every organization's default environment is resolved and the
   versions its pass will write are collected into an OrganizationPass.
   Any organization without a default aborts the run here, before a single
   write has been issued.
2. Apply: passes are applied in ascending organization id. Every write is
   awaited and its matched row count checked before the next one is issued.

The driver never commits. The session owner commits when run() returns and
rolls back when it raises.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from env_backfill.backfill.errors import BackfillWriteError
from env_backfill.backfill.resolver import resolve_default_environment
from env_backfill.config import BackfillScope
from env_backfill.repository import (
    AppRepository,
    AppVersionRepository,
    OrganizationRepository,
)


@dataclass(frozen=True)
class OrganizationPass:
    """One organization's share of the backfill.

    Attributes:
        organization_id: Organization being processed
        environment_id: Its resolved default environment
        version_ids: Versions this pass writes, in write order
    """

    organization_id: int
    environment_id: int
    version_ids: Tuple[int, ...]


@dataclass
class BackfillResult:
    """Summary of a completed run."""

    scope: BackfillScope
    passes: List[OrganizationPass] = field(default_factory=list)
    versions_updated: int = 0

    @property
    def organizations(self) -> int:
        return len(self.passes)

    @property
    def updated_by_organization(self) -> Dict[int, int]:
        return {p.organization_id: len(p.version_ids) for p in self.passes}


class VersionBackfillDriver:
    """Points every in-scope app version at its organization's default environment.

    Args:
        session: Open session; all reads and writes share its transaction
        scope: ORGANIZATION writes only the organization's own apps, GLOBAL
            writes every app on every pass
        batch_writes: One UPDATE per organization instead of one per version
    """

    def __init__(
        self,
        session: AsyncSession,
        scope: BackfillScope = BackfillScope.ORGANIZATION,
        batch_writes: bool = False,
    ):
        self.scope = scope
        self.batch_writes = batch_writes
        self.organization_repository = OrganizationRepository(session)
        self.app_repository = AppRepository(session)
        self.app_version_repository = AppVersionRepository(session)

    async def plan(self) -> List[OrganizationPass]:
        """Resolve every organization's default and collect the versions to write."""
        organizations = await self.organization_repository.find_all_with_environments()
        logger.info(
            f"Planning backfill for {len(organizations)} organization(s), "
            f"scope={self.scope.value}"
        )

        passes = []
        for organization in organizations:
            environment = resolve_default_environment(
                organization.id, organization.app_environments
            )

            owner = organization.id if self.scope == BackfillScope.ORGANIZATION else None
            apps = await self.app_repository.find_with_versions(organization_id=owner)
            version_ids = tuple(version.id for app in apps for version in app.app_versions)

            logger.debug(
                f"Organization {organization.id}: default environment {environment.id}, "
                f"{len(version_ids)} version(s) across {len(apps)} app(s)"
            )
            passes.append(
                OrganizationPass(
                    organization_id=organization.id,
                    environment_id=environment.id,
                    version_ids=version_ids,
                )
            )
        return passes

    async def apply(self, organization_pass: OrganizationPass) -> int:
        """Write one pass. Returns the number of versions updated."""
        environment_id = organization_pass.environment_id

        if self.batch_writes:
            for version_id in organization_pass.version_ids:
                logger.info(f"Updating app version: {version_id}")
            return await self._write(organization_pass.version_ids, environment_id)

        updated = 0
        for version_id in organization_pass.version_ids:
            logger.info(f"Updating app version: {version_id}")
            updated += await self._write((version_id,), environment_id)
        return updated

    async def run(self) -> BackfillResult:
        """Plan, then apply every pass in order."""
        passes = await self.plan()

        result = BackfillResult(scope=self.scope)
        for organization_pass in passes:
            result.versions_updated += await self.apply(organization_pass)
            result.passes.append(organization_pass)
            logger.info(
                f"Organization {organization_pass.organization_id}: "
                f"{len(organization_pass.version_ids)} version(s) now reference "
                f"environment {organization_pass.environment_id}"
            )

        logger.info(
            f"Backfill complete: {result.versions_updated} version update(s) "
            f"across {result.organizations} organization(s)"
        )
        return result

    async def _write(self, version_ids: Tuple[int, ...], environment_id: int) -> int:
        if not version_ids:
            return 0

        try:
            if len(version_ids) == 1:
                matched = await self.app_version_repository.set_current_environment(
                    version_ids[0], environment_id
                )
            else:
                matched = await self.app_version_repository.set_current_environment_bulk(
                    version_ids, environment_id
                )
        except SQLAlchemyError as e:
            raise BackfillWriteError(version_ids, environment_id, reason=str(e)) from e

        if matched != len(version_ids):
            raise BackfillWriteError(
                version_ids,
                environment_id,
                reason=f"expected {len(version_ids)} row(s) to match, got {matched}",
            )
        return matched
