"""CI release flow: create a draft, attach artifacts, optionally publish."""

import logging

from update_registry.exceptions import RegistryException, ValidationError
from update_registry.models.app import App
from update_registry.models.release import Artifact, CIReleaseCreate, Release, ReleaseCreate
from update_registry.services.artifact_service import ArtifactService
from update_registry.services.release_service import ReleaseService

logger = logging.getLogger(__name__)


class CIReleaseService:
    """Service behind ``POST /ci/apps/{app_slug}/releases``.

    Attributes:
        releases: Release service.
        artifacts: Artifact service.
    """

    def __init__(self, releases: ReleaseService, artifacts: ArtifactService) -> None:
        self.releases = releases
        self.artifacts = artifacts

    async def create_release(self, app: App, data: CIReleaseCreate) -> tuple[Release, list[Artifact]]:
        """Create a release with its artifacts in one call.

        The release is created as a draft, the artifacts are attached and
        the release is published when ``auto_publish`` is set. If any
        artifact fails, the draft is deleted again so a half-populated
        release never lingers.

        Args:
            app: Target app.
            data: CI release request.

        Returns:
            Tuple of (release, attached artifacts).

        Raises:
            ValidationError: If two artifacts share a platform.
            DuplicateVersionError: If the version already exists.
            PlatformConflictError: If an artifact collides with a stored one.
        """
        seen: set[str] = set()
        for index, artifact in enumerate(data.artifacts):
            if artifact.platform in seen:
                raise ValidationError(
                    f"Duplicate artifact platform '{artifact.platform}'",
                    field=f"artifacts.{index}.platform",
                )
            seen.add(artifact.platform)

        release = await self.releases.create_release(
            app.id,
            ReleaseCreate(version=data.version, notes=data.notes),
        )

        created: list[Artifact] = []
        try:
            for artifact in data.artifacts:
                created.append(await self.artifacts.create_artifact(release, artifact))
        except RegistryException:
            logger.warning(
                f"CI release {release.version} of {app.slug} failed after "
                f"{len(created)} artifacts; removing draft"
            )
            await self.releases.delete_release(app.id, release.id)
            raise

        if data.auto_publish:
            release = await self.releases.publish_release(app.id, release.id)

        logger.info(
            f"CI release {release.version} of {app.slug}: {len(created)} artifacts, "
            f"status {release.status.value}"
        )
        return release, created
