"""Artifact and installer repositories for database operations."""

import logging
import uuid
from typing import Iterable, Optional

import aiosqlite

from update_registry.db.database import Database
from update_registry.exceptions import PlatformConflictError, ReleaseStatusError
from update_registry.models.release import Artifact, Installer, ReleaseStatus
from update_registry.timeutil import from_db, to_db

logger = logging.getLogger(__name__)


def row_to_artifact(row) -> Artifact:
    """Convert a database row to an Artifact object."""
    return Artifact(
        id=row["id"],
        release_id=row["release_id"],
        platform=row["platform"],
        signature=row["signature"],
        download_url=row["download_url"],
        file_size=row["file_size"],
        checksum=row["checksum"],
        created_at=from_db(row["created_at"]),
    )


def _release_status_guard(release_statuses: Iterable[ReleaseStatus]) -> tuple[str, tuple]:
    """WHERE clause admitting an insert only while the release has one of ``release_statuses``."""
    values = tuple(sorted(status.value for status in release_statuses))
    placeholders = ", ".join("?" for _ in values)
    return f"WHERE EXISTS (SELECT 1 FROM releases WHERE id = ? AND status IN ({placeholders}))", values


def row_to_installer(row) -> Installer:
    """Convert a database row to an Installer object."""
    return Installer(
        id=row["id"],
        release_id=row["release_id"],
        platform=row["platform"],
        filename=row["filename"],
        display_name=row["display_name"],
        download_url=row["download_url"],
        file_size=row["file_size"],
        checksum=row["checksum"],
        created_at=from_db(row["created_at"]),
    )


class ArtifactRepository:
    """Repository for artifact CRUD operations.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(self, artifact: Artifact, release_statuses: Iterable[ReleaseStatus]) -> Artifact:
        """Create a new artifact.

        The insert is guarded by the owning release's status in the same
        statement, so an archive committing in between cannot be missed.

        Args:
            artifact: Artifact to create.
            release_statuses: Release statuses that accept new artifacts.

        Returns:
            Created artifact.

        Raises:
            PlatformConflictError: If the release already has this platform.
            ReleaseStatusError: If the release is not in an accepting status.
        """
        if not artifact.id:
            artifact.id = str(uuid.uuid4())

        guard, statuses = _release_status_guard(release_statuses)
        query = f"""
        INSERT INTO artifacts (
            id, release_id, platform, signature, download_url,
            file_size, checksum, created_at
        ) SELECT ?, ?, ?, ?, ?, ?, ?, ? {guard}
        """
        try:
            cursor = await self.db.execute(
                query,
                (
                    artifact.id,
                    artifact.release_id,
                    artifact.platform,
                    artifact.signature,
                    artifact.download_url,
                    artifact.file_size,
                    artifact.checksum,
                    to_db(artifact.created_at),
                    artifact.release_id,
                    *statuses,
                ),
            )
        except aiosqlite.IntegrityError as e:
            await self.db.rollback()
            raise PlatformConflictError("artifact", artifact.release_id, artifact.platform) from e
        await self.db.commit()
        if cursor.rowcount == 0:
            raise ReleaseStatusError(f"Release '{artifact.release_id}' no longer accepts artifacts")
        logger.info(f"Created artifact {artifact.platform} for release {artifact.release_id}")
        return artifact

    async def get_by_id(self, artifact_id: str, release_id: Optional[str] = None) -> Optional[Artifact]:
        """Get an artifact by ID, optionally scoped to a release."""
        if release_id is None:
            row = await self.db.fetch_one("SELECT * FROM artifacts WHERE id = ?", (artifact_id,))
        else:
            row = await self.db.fetch_one(
                "SELECT * FROM artifacts WHERE id = ? AND release_id = ?",
                (artifact_id, release_id),
            )
        return row_to_artifact(row) if row else None

    async def list_for_release(self, release_id: str) -> list[Artifact]:
        rows = await self.db.fetch_all(
            "SELECT * FROM artifacts WHERE release_id = ? ORDER BY platform",
            (release_id,),
        )
        return [row_to_artifact(row) for row in rows]

    async def delete(self, artifact_id: str) -> bool:
        cursor = await self.db.execute("DELETE FROM artifacts WHERE id = ?", (artifact_id,))
        await self.db.commit()
        return cursor.rowcount > 0


class InstallerRepository:
    """Repository for installer CRUD operations.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        self.db = db

    async def create(self, installer: Installer, release_statuses: Iterable[ReleaseStatus]) -> Installer:
        """Create a new installer, guarded by the owning release's status.

        Raises:
            PlatformConflictError: If the release already has this platform.
            ReleaseStatusError: If the release is not in an accepting status.
        """
        if not installer.id:
            installer.id = str(uuid.uuid4())

        guard, statuses = _release_status_guard(release_statuses)
        query = f"""
        INSERT INTO installers (
            id, release_id, platform, filename, display_name,
            download_url, file_size, checksum, created_at
        ) SELECT ?, ?, ?, ?, ?, ?, ?, ?, ? {guard}
        """
        try:
            cursor = await self.db.execute(
                query,
                (
                    installer.id,
                    installer.release_id,
                    installer.platform,
                    installer.filename,
                    installer.display_name,
                    installer.download_url,
                    installer.file_size,
                    installer.checksum,
                    to_db(installer.created_at),
                    installer.release_id,
                    *statuses,
                ),
            )
        except aiosqlite.IntegrityError as e:
            await self.db.rollback()
            raise PlatformConflictError("installer", installer.release_id, installer.platform) from e
        await self.db.commit()
        if cursor.rowcount == 0:
            raise ReleaseStatusError(f"Release '{installer.release_id}' no longer accepts installers")
        logger.info(f"Created installer {installer.platform} for release {installer.release_id}")
        return installer

    async def get_by_id(self, installer_id: str, release_id: Optional[str] = None) -> Optional[Installer]:
        if release_id is None:
            row = await self.db.fetch_one("SELECT * FROM installers WHERE id = ?", (installer_id,))
        else:
            row = await self.db.fetch_one(
                "SELECT * FROM installers WHERE id = ? AND release_id = ?",
                (installer_id, release_id),
            )
        return row_to_installer(row) if row else None

    async def list_for_release(self, release_id: str) -> list[Installer]:
        rows = await self.db.fetch_all(
            "SELECT * FROM installers WHERE release_id = ? ORDER BY platform",
            (release_id,),
        )
        return [row_to_installer(row) for row in rows]

    async def delete(self, installer_id: str) -> bool:
        cursor = await self.db.execute("DELETE FROM installers WHERE id = ?", (installer_id,))
        await self.db.commit()
        return cursor.rowcount > 0
