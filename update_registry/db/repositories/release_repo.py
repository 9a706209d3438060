"""Release repository for database operations."""

import logging
import uuid
from typing import Optional

import aiosqlite

from update_registry.db.database import Database
from update_registry.db.repositories.artifact_repo import row_to_artifact
from update_registry.exceptions import DuplicateVersionError, ReleaseStatusError
from update_registry.models.release import Release, ReleaseStatus
from update_registry.timeutil import from_db, to_db

logger = logging.getLogger(__name__)


class ReleaseRepository:
    """Repository for release CRUD operations.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the repository.

        Args:
            db: Database instance.
        """
        self.db = db

    async def create(self, release: Release) -> Release:
        """Create a new release.

        Args:
            release: Release to create.

        Returns:
            Created release.

        Raises:
            DuplicateVersionError: If the app already has this version.
        """
        if not release.id:
            release.id = str(uuid.uuid4())

        query = """
        INSERT INTO releases (
            id, app_id, version, notes, pub_date, status, created_at, updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """
        try:
            await self.db.execute(
                query,
                (
                    release.id,
                    release.app_id,
                    release.version,
                    release.notes,
                    to_db(release.pub_date),
                    release.status.value,
                    to_db(release.created_at),
                    to_db(release.updated_at),
                ),
            )
        except aiosqlite.IntegrityError as e:
            await self.db.rollback()
            raise DuplicateVersionError(release.app_id, release.version) from e
        await self.db.commit()
        logger.info(f"Created release {release.version} for app {release.app_id}")
        return release

    async def get_by_id(self, release_id: str, app_id: Optional[str] = None) -> Optional[Release]:
        """Get a release by ID, optionally scoped to an app.

        Args:
            release_id: Release ID.
            app_id: Owning app ID to enforce, if given.

        Returns:
            Release or None if not found.
        """
        if app_id is None:
            row = await self.db.fetch_one("SELECT * FROM releases WHERE id = ?", (release_id,))
        else:
            row = await self.db.fetch_one(
                "SELECT * FROM releases WHERE id = ? AND app_id = ?",
                (release_id, app_id),
            )
        return self._row_to_release(row) if row else None

    async def list_for_app(
        self,
        app_id: str,
        status: Optional[ReleaseStatus] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> tuple[list[Release], int]:
        """List releases of an app, newest first.

        Args:
            app_id: App ID.
            status: Optional status filter.
            limit: Page size.
            offset: Rows to skip.

        Returns:
            Tuple of (releases, total count).
        """
        where = "WHERE app_id = ?"
        params: tuple = (app_id,)
        if status is not None:
            where += " AND status = ?"
            params += (status.value,)

        rows = await self.db.fetch_all(
            f"SELECT * FROM releases {where} ORDER BY created_at DESC LIMIT ? OFFSET ?",
            params + (limit, offset),
        )
        total = await self.db.fetch_one(f"SELECT COUNT(*) AS total FROM releases {where}", params)
        return [self._row_to_release(row) for row in rows], total["total"]

    async def list_published_with_artifacts(self, app_id: str) -> list[Release]:
        """Load every published release of an app with its artifacts.

        Ordering is left to the caller since it follows semver precedence,
        which SQL cannot express.

        Args:
            app_id: App ID.

        Returns:
            Published releases with ``artifacts`` populated.
        """
        rows = await self.db.fetch_all(
            "SELECT * FROM releases WHERE app_id = ? AND status = ?",
            (app_id, ReleaseStatus.PUBLISHED.value),
        )
        releases = {row["id"]: self._row_to_release(row) for row in rows}
        if not releases:
            return []

        artifact_rows = await self.db.fetch_all(
            """
            SELECT a.* FROM artifacts a
            JOIN releases r ON r.id = a.release_id
            WHERE r.app_id = ? AND r.status = ?
            """,
            (app_id, ReleaseStatus.PUBLISHED.value),
        )
        for row in artifact_rows:
            release = releases.get(row["release_id"])
            if release is not None:
                release.artifacts.append(row_to_artifact(row))

        return list(releases.values())

    async def update(self, release: Release, expected_status: ReleaseStatus) -> Release:
        """Persist notes, status and publication date of a release.

        The write only applies while the stored status still equals
        ``expected_status``, the status the caller validated against.

        Args:
            release: Release with the new values.
            expected_status: Status the release had when it was loaded.

        Returns:
            The updated release.

        Raises:
            ReleaseStatusError: If the stored status changed in the meantime.
        """
        cursor = await self.db.execute(
            """
            UPDATE releases SET notes = ?, status = ?, pub_date = ?, updated_at = ?
            WHERE id = ? AND status = ?
            """,
            (
                release.notes,
                release.status.value,
                to_db(release.pub_date),
                to_db(release.updated_at),
                release.id,
                expected_status.value,
            ),
        )
        await self.db.commit()
        if cursor.rowcount == 0:
            logger.warning(f"Release {release.version} changed status concurrently; update rejected")
            raise ReleaseStatusError(
                f"Release {release.version} is no longer '{expected_status.value}'"
            )
        return release

    async def delete(self, release_id: str, status: Optional[ReleaseStatus] = None) -> bool:
        """Delete a release; artifacts and installers cascade.

        Args:
            release_id: Release ID.
            status: Only delete while the release is in this status.

        Returns:
            True if a row was deleted.
        """
        query = "DELETE FROM releases WHERE id = ?"
        params: tuple = (release_id,)
        if status is not None:
            query += " AND status = ?"
            params += (status.value,)
        cursor = await self.db.execute(query, params)
        await self.db.commit()
        return cursor.rowcount > 0

    def _row_to_release(self, row) -> Release:
        return Release(
            id=row["id"],
            app_id=row["app_id"],
            version=row["version"],
            notes=row["notes"],
            pub_date=from_db(row["pub_date"]),
            status=ReleaseStatus(row["status"]),
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )
