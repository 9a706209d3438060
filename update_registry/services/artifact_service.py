"""Artifact and installer service.

Files are registered by URL; uploading them is the job of the release
pipeline, not of this service.
"""

import logging

from update_registry.db.repositories.artifact_repo import ArtifactRepository, InstallerRepository
from update_registry.db.repositories.release_repo import ReleaseRepository
from update_registry.exceptions import (
    ArtifactNotFoundError,
    InstallerNotFoundError,
    ReleaseNotFoundError,
)
from update_registry.models.release import (
    Artifact,
    ArtifactCreate,
    Installer,
    InstallerCreate,
    Release,
)
from update_registry.services import lifecycle
from update_registry.timeutil import Clock, utcnow

logger = logging.getLogger(__name__)


class ArtifactService:
    """Service for attaching update artifacts and installers to releases.

    Attributes:
        release_repo: Release repository.
        artifact_repo: Artifact repository.
        installer_repo: Installer repository.
        clock: Source of the current time.
    """

    def __init__(
        self,
        release_repo: ReleaseRepository,
        artifact_repo: ArtifactRepository,
        installer_repo: InstallerRepository,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            release_repo: Release repository.
            artifact_repo: Artifact repository.
            installer_repo: Installer repository.
            clock: Source of the current time.
        """
        self.release_repo = release_repo
        self.artifact_repo = artifact_repo
        self.installer_repo = installer_repo
        self.clock = clock

    async def _get_release(self, app_id: str, release_id: str) -> Release:
        release = await self.release_repo.get_by_id(release_id, app_id=app_id)
        if release is None:
            raise ReleaseNotFoundError(release_id)
        return release

    async def add_artifact(self, app_id: str, release_id: str, data: ArtifactCreate) -> Artifact:
        """Attach an update artifact to a release.

        Args:
            app_id: Owning app ID.
            release_id: Release ID.
            data: Artifact data.

        Returns:
            Created artifact.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the release is archived.
            PlatformConflictError: If the platform is already covered.
        """
        release = await self._get_release(app_id, release_id)
        lifecycle.ensure_attachable(release)
        return await self.create_artifact(release, data)

    async def create_artifact(self, release: Release, data: ArtifactCreate) -> Artifact:
        """Store an artifact for an already loaded release.

        Raises:
            ReleaseStatusError: If the release was archived meanwhile.
            PlatformConflictError: If the platform is already covered.
        """
        artifact = Artifact(
            id="",
            release_id=release.id,
            platform=data.platform,
            signature=data.signature,
            download_url=data.download_url,
            file_size=data.file_size,
            checksum=data.checksum,
            created_at=self.clock(),
        )
        if not artifact.signature:
            logger.warning(f"Artifact {artifact.platform} of release {release.version} has no signature")
        return await self.artifact_repo.create(artifact, lifecycle.ATTACHABLE_STATUSES)

    async def list_artifacts(self, app_id: str, release_id: str) -> list[Artifact]:
        release = await self._get_release(app_id, release_id)
        return await self.artifact_repo.list_for_release(release.id)

    async def get_artifact(self, app_id: str, release_id: str, artifact_id: str) -> Artifact:
        """Get one artifact of a release.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ArtifactNotFoundError: If the artifact does not exist.
        """
        release = await self._get_release(app_id, release_id)
        artifact = await self.artifact_repo.get_by_id(artifact_id, release_id=release.id)
        if artifact is None:
            raise ArtifactNotFoundError(artifact_id)
        return artifact

    async def delete_artifact(self, app_id: str, release_id: str, artifact_id: str) -> None:
        """Remove an artifact from a draft or published release.

        Raises:
            ReleaseStatusError: If the release is archived.
        """
        release = await self._get_release(app_id, release_id)
        lifecycle.ensure_attachable(release)
        artifact = await self.artifact_repo.get_by_id(artifact_id, release_id=release.id)
        if artifact is None:
            raise ArtifactNotFoundError(artifact_id)
        await self.artifact_repo.delete(artifact.id)
        logger.info(f"Deleted artifact {artifact.platform} of release {release.version}")

    async def add_installer(self, app_id: str, release_id: str, data: InstallerCreate) -> Installer:
        """Attach a first-time installer to a release.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
            ReleaseStatusError: If the release is archived.
            PlatformConflictError: If the platform is already covered.
        """
        release = await self._get_release(app_id, release_id)
        lifecycle.ensure_attachable(release)
        installer = Installer(
            id="",
            release_id=release.id,
            platform=data.platform,
            filename=data.filename,
            display_name=data.display_name,
            download_url=data.download_url,
            file_size=data.file_size,
            checksum=data.checksum,
            created_at=self.clock(),
        )
        return await self.installer_repo.create(installer, lifecycle.ATTACHABLE_STATUSES)

    async def list_installers(self, app_id: str, release_id: str) -> list[Installer]:
        release = await self._get_release(app_id, release_id)
        return await self.installer_repo.list_for_release(release.id)

    async def delete_installer(self, app_id: str, release_id: str, installer_id: str) -> None:
        release = await self._get_release(app_id, release_id)
        lifecycle.ensure_attachable(release)
        installer = await self.installer_repo.get_by_id(installer_id, release_id=release.id)
        if installer is None:
            raise InstallerNotFoundError(installer_id)
        await self.installer_repo.delete(installer.id)
        logger.info(f"Deleted installer {installer.platform} of release {release.version}")
