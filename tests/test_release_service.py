"""Tests for release and artifact services against a real database."""

import asyncio
from datetime import datetime, timezone

import pytest

from update_registry.db.repositories import (
    AppRepository,
    ArtifactRepository,
    InstallerRepository,
    ReleaseRepository,
)
from update_registry.exceptions import ReleaseStatusError
from update_registry.models.app import App
from update_registry.models.release import (
    ArtifactCreate,
    InstallerCreate,
    ReleaseCreate,
    ReleaseStatus,
    ReleaseUpdate,
)
from update_registry.services.artifact_service import ArtifactService
from update_registry.services.release_service import ReleaseService

NOW = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


async def _setup(db) -> tuple[ReleaseService, ArtifactService, str]:
    app_repo = AppRepository(db)
    release_repo = ReleaseRepository(db)
    app = await app_repo.create(App(id="", slug="acme", name="Acme"))
    releases = ReleaseService(release_repo, app_repo, clock=lambda: NOW)
    artifacts = ArtifactService(release_repo, ArtifactRepository(db), InstallerRepository(db), clock=lambda: NOW)
    return releases, artifacts, app.id


@pytest.mark.asyncio
async def test_concurrent_publish_succeeds_once(db) -> None:
    releases, _, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))

    results = await asyncio.gather(
        releases.publish_release(app_id, draft.id),
        releases.publish_release(app_id, draft.id),
        return_exceptions=True,
    )

    conflicts = [r for r in results if isinstance(r, ReleaseStatusError)]
    published = [r for r in results if not isinstance(r, Exception)]
    assert len(conflicts) == 1
    assert len(published) == 1
    stored = await releases.get_release(app_id, draft.id)
    assert stored.status == ReleaseStatus.PUBLISHED
    assert stored.pub_date == NOW


@pytest.mark.asyncio
async def test_concurrent_publish_and_archive(db) -> None:
    releases, _, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))

    results = await asyncio.gather(
        releases.publish_release(app_id, draft.id),
        releases.archive_release(app_id, draft.id),
        return_exceptions=True,
    )

    stored = await releases.get_release(app_id, draft.id)
    succeeded = [r for r in results if not isinstance(r, Exception)]
    assert len(succeeded) >= 1
    assert all(isinstance(r, ReleaseStatusError) for r in results if isinstance(r, Exception))
    assert stored.status == succeeded[-1].status


@pytest.mark.asyncio
async def test_stale_patch_does_not_revert_archive(db) -> None:
    releases, _, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))
    stale = await releases.get_release(app_id, draft.id)
    await releases.archive_release(app_id, draft.id)

    stale.notes = "late edit"
    with pytest.raises(ReleaseStatusError):
        await releases.repo.update(stale, expected_status=ReleaseStatus.DRAFT)

    stored = await releases.get_release(app_id, draft.id)
    assert stored.status == ReleaseStatus.ARCHIVED
    assert stored.notes is None


@pytest.mark.asyncio
async def test_patch_notes_keeps_status(db) -> None:
    releases, _, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))

    updated = await releases.update_release(app_id, draft.id, ReleaseUpdate(notes="Changelog"))

    assert updated.notes == "Changelog"
    assert updated.status == ReleaseStatus.DRAFT


@pytest.mark.asyncio
async def test_attach_to_release_archived_after_load_is_rejected(db) -> None:
    releases, artifacts, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))
    loaded = await releases.get_release(app_id, draft.id)
    await releases.archive_release(app_id, draft.id)

    with pytest.raises(ReleaseStatusError):
        await artifacts.create_artifact(
            loaded,
            ArtifactCreate(platform="linux-x86_64", download_url="https://cdn.example.com/a.AppImage"),
        )

    assert await artifacts.artifact_repo.list_for_release(draft.id) == []


@pytest.mark.asyncio
async def test_installer_insert_checks_release_status(db) -> None:
    releases, artifacts, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))
    await releases.archive_release(app_id, draft.id)
    installer = InstallerCreate(
        platform="windows-x86_64",
        filename="setup.exe",
        download_url="https://cdn.example.com/setup.exe",
    )

    with pytest.raises(ReleaseStatusError):
        await artifacts.add_installer(app_id, draft.id, installer)


@pytest.mark.asyncio
async def test_delete_only_while_draft(db) -> None:
    releases, _, app_id = await _setup(db)
    draft = await releases.create_release(app_id, ReleaseCreate(version="1.0.0"))

    assert not await releases.repo.delete(draft.id, status=ReleaseStatus.PUBLISHED)
    await releases.delete_release(app_id, draft.id)

    assert await releases.repo.get_by_id(draft.id) is None
