"""Tests for VersionBackfillDriver."""

import pytest
from loguru import logger
from sqlalchemy.exc import OperationalError

from env_backfill import db
from env_backfill.backfill import (
    BackfillWriteError,
    NoDefaultEnvironmentError,
    OrganizationPass,
    VersionBackfillDriver,
)
from env_backfill.config import BackfillScope
from env_backfill.repository import AppVersionRepository


async def run_backfill(session_maker, **kwargs):
    async with db.scoped_session(session_maker) as session:
        return await VersionBackfillDriver(session, **kwargs).run()


@pytest.mark.asyncio
async def test_versions_get_their_organization_default(
    session_maker, create_organization, current_environments
):
    """O1 {E1 default, E2} with A1 {V1, V2}; O2 {E3 default} without apps."""
    o1 = await create_organization("O1", [("E1", True), ("E2", False)], apps={"A1": ["V1", "V2"]})
    o2 = await create_organization("O2", [("E3", True)])
    e1 = o1.app_environments[0]
    v1, v2 = o1.apps[0].app_versions

    result = await run_backfill(session_maker)

    assert await current_environments() == {v1.id: e1.id, v2.id: e1.id}
    assert result.versions_updated == 2
    assert result.organizations == 2
    assert result.updated_by_organization == {o1.id: 2, o2.id: 0}


@pytest.mark.asyncio
async def test_each_organization_keeps_its_own_default(
    session_maker, tenants, current_environments
):
    """Later organizations must not overwrite earlier organizations' versions."""
    o1, o2 = tenants
    e1 = o1.app_environments[0]
    e3 = o2.app_environments[0]
    v1, v2 = o1.apps[0].app_versions
    (v3,) = o2.apps[0].app_versions

    await run_backfill(session_maker)

    assert await current_environments() == {v1.id: e1.id, v2.id: e1.id, v3.id: e3.id}


@pytest.mark.asyncio
async def test_global_scope_leaves_last_organization_default_everywhere(
    session_maker, tenants, current_environments
):
    o1, o2 = tenants
    e3 = o2.app_environments[0]

    result = await run_backfill(session_maker, scope=BackfillScope.GLOBAL)

    assert set((await current_environments()).values()) == {e3.id}
    # every pass writes all three versions
    assert result.versions_updated == 6
    assert result.scope == BackfillScope.GLOBAL


@pytest.mark.asyncio
async def test_running_twice_gives_same_state(session_maker, tenants, current_environments):
    await run_backfill(session_maker)
    first = await current_environments()

    await run_backfill(session_maker)

    assert await current_environments() == first


@pytest.mark.asyncio
async def test_missing_default_aborts_before_any_write(
    session_maker, create_organization, current_environments, monkeypatch
):
    await create_organization("O1", [("E1", True)], apps={"A1": ["V1", "V2"]})
    o2 = await create_organization("O2", [("staging", False)], apps={"A2": ["V3"]})

    writes = []
    original = AppVersionRepository.set_current_environment

    async def recording(self, version_id, environment_id):
        writes.append(version_id)
        return await original(self, version_id, environment_id)

    monkeypatch.setattr(AppVersionRepository, "set_current_environment", recording)

    with pytest.raises(NoDefaultEnvironmentError) as exc_info:
        await run_backfill(session_maker)

    assert exc_info.value.organization_id == o2.id
    assert writes == []
    assert set((await current_environments()).values()) == {None}


@pytest.mark.asyncio
async def test_write_failure_rolls_back_earlier_writes(
    session_maker, tenants, current_environments, monkeypatch
):
    original = AppVersionRepository.set_current_environment
    calls = []

    async def flaky(self, version_id, environment_id):
        calls.append(version_id)
        if len(calls) == 2:
            raise OperationalError("UPDATE app_version", {}, Exception("disk I/O error"))
        return await original(self, version_id, environment_id)

    monkeypatch.setattr(AppVersionRepository, "set_current_environment", flaky)

    with pytest.raises(BackfillWriteError) as exc_info:
        await run_backfill(session_maker)

    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert exc_info.value.version_ids == [calls[1]]
    # no further writes after the failure
    assert len(calls) == 2
    assert set((await current_environments()).values()) == {None}


@pytest.mark.asyncio
async def test_unconfirmed_write_is_an_error(session_maker, tenants, monkeypatch):
    async def lost(self, version_id, environment_id):
        return 0

    monkeypatch.setattr(AppVersionRepository, "set_current_environment", lost)

    with pytest.raises(BackfillWriteError, match="expected 1 row"):
        await run_backfill(session_maker)


@pytest.mark.asyncio
async def test_writes_are_issued_in_order(session_maker, tenants, monkeypatch):
    o1, o2 = tenants
    original = AppVersionRepository.set_current_environment
    order = []

    async def recording(self, version_id, environment_id):
        order.append((version_id, environment_id))
        return await original(self, version_id, environment_id)

    monkeypatch.setattr(AppVersionRepository, "set_current_environment", recording)

    await run_backfill(session_maker)

    e1 = o1.app_environments[0].id
    e3 = o2.app_environments[0].id
    v1, v2 = (v.id for v in o1.apps[0].app_versions)
    (v3,) = (v.id for v in o2.apps[0].app_versions)
    assert order == [(v1, e1), (v2, e1), (v3, e3)]


@pytest.mark.asyncio
async def test_batch_writes_use_one_update_per_organization(
    session_maker, tenants, current_environments, monkeypatch
):
    o1, o2 = tenants
    original = AppVersionRepository.set_current_environment_bulk
    batches = []

    async def recording(self, version_ids, environment_id):
        batches.append(tuple(version_ids))
        return await original(self, version_ids, environment_id)

    monkeypatch.setattr(AppVersionRepository, "set_current_environment_bulk", recording)

    result = await run_backfill(session_maker, batch_writes=True)

    v1, v2 = (v.id for v in o1.apps[0].app_versions)
    (v3,) = (v.id for v in o2.apps[0].app_versions)
    # single-version passes go through the single-row update
    assert batches == [(v1, v2)]
    assert result.versions_updated == 3
    assert await current_environments() == {
        v1: o1.app_environments[0].id,
        v2: o1.app_environments[0].id,
        v3: o2.app_environments[0].id,
    }


@pytest.mark.asyncio
async def test_plan_resolves_without_writing(session, tenants, current_environments):
    o1, o2 = tenants

    passes = await VersionBackfillDriver(session).plan()

    assert passes == [
        OrganizationPass(
            organization_id=o1.id,
            environment_id=o1.app_environments[0].id,
            version_ids=tuple(v.id for v in o1.apps[0].app_versions),
        ),
        OrganizationPass(
            organization_id=o2.id,
            environment_id=o2.app_environments[0].id,
            version_ids=tuple(v.id for v in o2.apps[0].app_versions),
        ),
    ]
    assert set((await current_environments()).values()) == {None}


@pytest.mark.asyncio
async def test_logs_each_version(session_maker, tenants):
    o1, o2 = tenants
    messages = []
    handler_id = logger.add(lambda m: messages.append(m.record["message"]), level="INFO")
    try:
        await run_backfill(session_maker)
    finally:
        logger.remove(handler_id)

    version_ids = [v.id for o in (o1, o2) for v in o.apps[0].app_versions]
    for version_id in version_ids:
        assert f"Updating app version: {version_id}" in messages


@pytest.mark.asyncio
async def test_no_organizations(session_maker):
    result = await run_backfill(session_maker)

    assert result.organizations == 0
    assert result.versions_updated == 0
