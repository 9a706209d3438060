"""App repository for database operations."""

import logging
import uuid
from typing import Optional

import aiosqlite

from update_registry.db.database import Database
from update_registry.exceptions import DuplicateAppError
from update_registry.models.app import App
from update_registry.timeutil import from_db, to_db, utcnow

logger = logging.getLogger(__name__)


class AppRepository:
    """Repository for app CRUD operations.

    Attributes:
        db: Database instance.
    """

    def __init__(self, db: Database) -> None:
        """Initialize the repository.

        Args:
            db: Database instance.
        """
        self.db = db

    async def create(self, app: App) -> App:
        """Create a new app.

        Args:
            app: App to create.

        Returns:
            Created app.

        Raises:
            DuplicateAppError: If the slug is already taken.
        """
        if not app.id:
            app.id = str(uuid.uuid4())

        query = """
        INSERT INTO apps (id, slug, name, description, public_key, created_at, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """
        try:
            await self.db.execute(
                query,
                (
                    app.id,
                    app.slug,
                    app.name,
                    app.description,
                    app.public_key,
                    to_db(app.created_at),
                    to_db(app.updated_at),
                ),
            )
        except aiosqlite.IntegrityError as e:
            await self.db.rollback()
            raise DuplicateAppError(app.slug) from e
        await self.db.commit()
        logger.info(f"Created app: {app.slug}")
        return app

    async def get_by_id(self, app_id: str) -> Optional[App]:
        """Get an app by ID.

        Args:
            app_id: App ID.

        Returns:
            App or None if not found.
        """
        row = await self.db.fetch_one("SELECT * FROM apps WHERE id = ?", (app_id,))
        return self._row_to_app(row) if row else None

    async def get_by_slug(self, slug: str) -> Optional[App]:
        """Get an app by slug.

        Args:
            slug: App slug.

        Returns:
            App or None if not found.
        """
        row = await self.db.fetch_one("SELECT * FROM apps WHERE slug = ?", (slug,))
        return self._row_to_app(row) if row else None

    async def list_apps(self, limit: int = 20, offset: int = 0) -> tuple[list[App], int]:
        """List apps, newest first.

        Returns:
            Tuple of (apps, total count).
        """
        rows = await self.db.fetch_all(
            "SELECT * FROM apps ORDER BY created_at DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )
        total = await self.db.fetch_one("SELECT COUNT(*) AS total FROM apps")
        return [self._row_to_app(row) for row in rows], total["total"]

    async def update(self, app: App) -> App:
        """Persist changed app fields."""
        app.updated_at = utcnow()
        await self.db.execute(
            """
            UPDATE apps SET name = ?, description = ?, public_key = ?, updated_at = ?
            WHERE id = ?
            """,
            (app.name, app.description, app.public_key, to_db(app.updated_at), app.id),
        )
        await self.db.commit()
        return app

    async def delete(self, app_id: str) -> bool:
        """Delete an app and, by cascade, its releases and events.

        Returns:
            True if a row was deleted.
        """
        cursor = await self.db.execute("DELETE FROM apps WHERE id = ?", (app_id,))
        await self.db.commit()
        return cursor.rowcount > 0

    def _row_to_app(self, row) -> App:
        return App(
            id=row["id"],
            slug=row["slug"],
            name=row["name"],
            description=row["description"],
            public_key=row["public_key"],
            created_at=from_db(row["created_at"]),
            updated_at=from_db(row["updated_at"]),
        )
