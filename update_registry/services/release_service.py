"""Release service: release CRUD plus lifecycle transitions."""

import logging
from typing import Optional

from update_registry.db.repositories.app_repo import AppRepository
from update_registry.db.repositories.release_repo import ReleaseRepository
from update_registry.exceptions import AppNotFoundError, ReleaseNotFoundError, ReleaseStatusError
from update_registry.models.release import Release, ReleaseCreate, ReleaseStatus, ReleaseUpdate
from update_registry.services import lifecycle
from update_registry.timeutil import Clock, utcnow

logger = logging.getLogger(__name__)


class ReleaseService:
    """Service for release operations.

    All status changes go through ``services.lifecycle`` so the admin API,
    the CI API and PATCH requests share the same rules.

    Attributes:
        repo: Release repository.
        app_repo: App repository.
        clock: Source of the current time.
    """

    def __init__(
        self,
        repo: ReleaseRepository,
        app_repo: AppRepository,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Release repository.
            app_repo: App repository.
            clock: Source of the current time (injected for tests).
        """
        self.repo = repo
        self.app_repo = app_repo
        self.clock = clock

    async def _require_app(self, app_id: str) -> None:
        if await self.app_repo.get_by_id(app_id) is None:
            raise AppNotFoundError(app_id)

    async def create_release(self, app_id: str, data: ReleaseCreate) -> Release:
        """Create a draft release.

        Args:
            app_id: Owning app ID.
            data: Release creation data.

        Returns:
            Created draft release.

        Raises:
            AppNotFoundError: If the app does not exist.
            DuplicateVersionError: If the version already exists.
        """
        await self._require_app(app_id)
        now = self.clock()
        release = Release(
            id="",
            app_id=app_id,
            version=data.version.strip(),
            notes=data.notes,
            status=ReleaseStatus.DRAFT,
            created_at=now,
            updated_at=now,
        )
        return await self.repo.create(release)

    async def get_release(self, app_id: str, release_id: str) -> Release:
        """Get a release of an app.

        Raises:
            ReleaseNotFoundError: If the release does not exist or belongs
                to another app.
        """
        release = await self.repo.get_by_id(release_id, app_id=app_id)
        if release is None:
            raise ReleaseNotFoundError(release_id)
        return release

    async def list_releases(
        self,
        app_id: str,
        status: Optional[ReleaseStatus] = None,
        page: int = 1,
        per_page: int = 20,
    ) -> tuple[list[Release], int]:
        """List releases of an app with pagination.

        Returns:
            Tuple of (releases, total count).
        """
        await self._require_app(app_id)
        return await self.repo.list_for_app(
            app_id,
            status=status,
            limit=per_page,
            offset=(page - 1) * per_page,
        )

    async def update_release(self, app_id: str, release_id: str, data: ReleaseUpdate) -> Release:
        """Update notes and, optionally, move the release to a new status.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the requested status change is illegal.
        """
        release = await self.get_release(app_id, release_id)
        loaded_status = release.status
        now = self.clock()
        changes = data.model_dump(exclude_unset=True)

        if "notes" in changes:
            release.notes = data.notes
            release.updated_at = now
        if data.status is not None:
            lifecycle.transition(release, data.status, now)
            logger.info(f"Release {release.version} moved {loaded_status.value} -> {release.status.value}")

        return await self.repo.update(release, expected_status=loaded_status)

    async def publish_release(self, app_id: str, release_id: str) -> Release:
        """Publish a draft release.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the release is not a draft.
        """
        release = await self.get_release(app_id, release_id)
        lifecycle.publish(release, self.clock())
        updated = await self.repo.update(release, expected_status=ReleaseStatus.DRAFT)
        logger.info(f"Published release {release.version} of app {app_id}")
        return updated

    async def archive_release(self, app_id: str, release_id: str) -> Release:
        """Archive a draft or published release.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the release is already archived.
        """
        release = await self.get_release(app_id, release_id)
        loaded_status = release.status
        lifecycle.archive(release, self.clock())
        updated = await self.repo.update(release, expected_status=loaded_status)
        logger.info(f"Archived release {release.version} of app {app_id}")
        return updated

    async def delete_release(self, app_id: str, release_id: str) -> None:
        """Delete a draft release together with its files.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the release is not a draft.
        """
        release = await self.get_release(app_id, release_id)
        lifecycle.ensure_deletable(release)
        if not await self.repo.delete(release.id, status=ReleaseStatus.DRAFT):
            raise ReleaseStatusError(f"Release {release.version} is no longer a draft")
        logger.info(f"Deleted draft release {release.version} of app {app_id}")
