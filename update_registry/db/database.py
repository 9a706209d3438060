"""Async SQLite database management."""

import logging
from pathlib import Path
from typing import Optional

import aiosqlite

from update_registry.config import get_settings
from update_registry.exceptions import RepositoryError

logger = logging.getLogger(__name__)

SCHEMA = """
-- Apps table
CREATE TABLE IF NOT EXISTS apps (
    id TEXT PRIMARY KEY,
    slug TEXT UNIQUE NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    public_key TEXT,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

-- Releases table
CREATE TABLE IF NOT EXISTS releases (
    id TEXT PRIMARY KEY,
    app_id TEXT NOT NULL REFERENCES apps(id) ON DELETE CASCADE,
    version TEXT NOT NULL,
    notes TEXT,
    pub_date TEXT,
    status TEXT NOT NULL DEFAULT 'draft'
        CHECK (status IN ('draft', 'published', 'archived')),
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE(app_id, version)
);

-- Artifacts table (update bundles)
CREATE TABLE IF NOT EXISTS artifacts (
    id TEXT PRIMARY KEY,
    release_id TEXT NOT NULL REFERENCES releases(id) ON DELETE CASCADE,
    platform TEXT NOT NULL,
    signature TEXT,
    download_url TEXT,
    file_size INTEGER,
    checksum TEXT,
    created_at TEXT NOT NULL,
    UNIQUE(release_id, platform)
);

-- Installers table (first-time downloads)
CREATE TABLE IF NOT EXISTS installers (
    id TEXT PRIMARY KEY,
    release_id TEXT NOT NULL REFERENCES releases(id) ON DELETE CASCADE,
    platform TEXT NOT NULL,
    filename TEXT NOT NULL,
    display_name TEXT,
    download_url TEXT,
    file_size INTEGER,
    checksum TEXT,
    created_at TEXT NOT NULL,
    UNIQUE(release_id, platform)
);

-- Download events table
CREATE TABLE IF NOT EXISTS download_events (
    id TEXT PRIMARY KEY,
    artifact_id TEXT,
    installer_id TEXT,
    app_id TEXT NOT NULL REFERENCES apps(id) ON DELETE CASCADE,
    platform TEXT NOT NULL,
    version TEXT NOT NULL,
    ip_country TEXT,
    download_type TEXT NOT NULL DEFAULT 'update',
    downloaded_at TEXT NOT NULL
);

-- Create indexes for performance
CREATE INDEX IF NOT EXISTS idx_releases_app_status ON releases(app_id, status);
CREATE INDEX IF NOT EXISTS idx_releases_pub_date ON releases(pub_date);
CREATE INDEX IF NOT EXISTS idx_artifacts_release ON artifacts(release_id);
CREATE INDEX IF NOT EXISTS idx_installers_release ON installers(release_id);
CREATE INDEX IF NOT EXISTS idx_download_events_app_time ON download_events(app_id, downloaded_at);
CREATE INDEX IF NOT EXISTS idx_download_events_artifact ON download_events(artifact_id);
"""


class Database:
    """Async SQLite database manager.

    Handles connection management and schema creation. Every sqlite
    failure is re-raised as RepositoryError so the HTTP layer can tell a
    broken store apart from an empty result.

    Attributes:
        db_path: Path to the SQLite database file.
        connection: Active database connection.
    """

    def __init__(self, db_url: Optional[str] = None) -> None:
        """Initialize the database manager.

        Args:
            db_url: Database URL (default: from settings).
        """
        url = db_url or get_settings().database_url
        # Extract path from sqlite:/// URL
        if url.startswith("sqlite:///"):
            self.db_path = Path(url[10:])
        else:
            self.db_path = Path(url)
        self.connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database connection and schema.

        Creates the database directory if needed and sets up tables.
        """
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        self.connection = await aiosqlite.connect(str(self.db_path))
        self.connection.row_factory = aiosqlite.Row

        await self.connection.execute("PRAGMA foreign_keys = ON")
        await self.connection.execute("PRAGMA journal_mode = WAL")

        await self.connection.executescript(SCHEMA)
        await self.connection.commit()

        logger.info(f"Database initialized at {self.db_path}")

    async def close(self) -> None:
        """Close the database connection."""
        if self.connection:
            await self.connection.close()
            self.connection = None
            logger.info("Database connection closed")

    def _require_connection(self, operation: str) -> aiosqlite.Connection:
        if self.connection is None:
            raise RepositoryError("database is not connected", operation=operation)
        return self.connection

    async def execute(
        self,
        query: str,
        params: tuple = (),
    ) -> aiosqlite.Cursor:
        """Execute a query and return the cursor.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            Database cursor.

        Raises:
            RepositoryError: If the query fails.
        """
        conn = self._require_connection("execute")
        try:
            return await conn.execute(query, params)
        except aiosqlite.IntegrityError:
            raise
        except aiosqlite.Error as e:
            logger.error(f"Database execute failed: {e}")
            raise RepositoryError(str(e), operation="execute") from e

    async def fetch_one(
        self,
        query: str,
        params: tuple = (),
    ) -> Optional[aiosqlite.Row]:
        """Fetch a single row.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            Single row or None.
        """
        conn = self._require_connection("fetch_one")
        try:
            cursor = await conn.execute(query, params)
            return await cursor.fetchone()
        except aiosqlite.Error as e:
            logger.error(f"Database fetch_one failed: {e}")
            raise RepositoryError(str(e), operation="fetch_one") from e

    async def fetch_all(
        self,
        query: str,
        params: tuple = (),
    ) -> list[aiosqlite.Row]:
        """Fetch all rows.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            List of rows.
        """
        conn = self._require_connection("fetch_all")
        try:
            cursor = await conn.execute(query, params)
            return list(await cursor.fetchall())
        except aiosqlite.Error as e:
            logger.error(f"Database fetch_all failed: {e}")
            raise RepositoryError(str(e), operation="fetch_all") from e

    async def commit(self) -> None:
        """Commit the current transaction."""
        conn = self._require_connection("commit")
        try:
            await conn.commit()
        except aiosqlite.Error as e:
            raise RepositoryError(str(e), operation="commit") from e

    async def rollback(self) -> None:
        """Roll back the current transaction."""
        if self.connection is not None:
            await self.connection.rollback()

    async def health_check(self) -> bool:
        """Check database connectivity.

        Returns:
            True if database is healthy, False otherwise.
        """
        try:
            if not self.connection:
                return False
            cursor = await self.connection.execute("SELECT 1")
            result = await cursor.fetchone()
            return result is not None and result[0] == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False
