"""App service for business logic."""

import logging

from update_registry.db.repositories.app_repo import AppRepository
from update_registry.exceptions import AppNotFoundError
from update_registry.models.app import App, AppCreate, AppUpdate

logger = logging.getLogger(__name__)


class AppService:
    """Service for app management.

    Attributes:
        repo: App repository.
    """

    def __init__(self, repo: AppRepository) -> None:
        """Initialize the service.

        Args:
            repo: App repository.
        """
        self.repo = repo

    async def create_app(self, data: AppCreate) -> App:
        """Register a new app.

        Args:
            data: App creation data.

        Returns:
            Created app.

        Raises:
            DuplicateAppError: If the slug is taken.
        """
        app = App(
            id="",
            slug=data.slug,
            name=data.name,
            description=data.description,
            public_key=data.public_key,
        )
        return await self.repo.create(app)

    async def get_app(self, app_id: str) -> App:
        """Get an app by ID.

        Raises:
            AppNotFoundError: If the app does not exist.
        """
        app = await self.repo.get_by_id(app_id)
        if app is None:
            raise AppNotFoundError(app_id)
        return app

    async def get_app_by_slug(self, slug: str) -> App:
        app = await self.repo.get_by_slug(slug)
        if app is None:
            raise AppNotFoundError(slug)
        return app

    async def list_apps(self, page: int = 1, per_page: int = 20) -> tuple[list[App], int]:
        """List apps with pagination.

        Args:
            page: Page number (1-based).
            per_page: Items per page.

        Returns:
            Tuple of (apps, total count).
        """
        return await self.repo.list_apps(limit=per_page, offset=(page - 1) * per_page)

    async def update_app(self, app_id: str, data: AppUpdate) -> App:
        """Apply a partial update to an app.

        Only fields present in the request are changed; an explicit
        ``public_key: null`` removes the key.
        """
        app = await self.get_app(app_id)
        changes = data.model_dump(exclude_unset=True)
        for name, value in changes.items():
            if name == "name" and value is None:
                continue
            setattr(app, name, value)
        updated = await self.repo.update(app)
        logger.info(f"Updated app {app.slug}: {', '.join(sorted(changes)) or 'no changes'}")
        return updated

    async def delete_app(self, app_id: str) -> App:
        """Delete an app together with its releases and download events.

        Raises:
            AppNotFoundError: If the app does not exist.
        """
        app = await self.get_app(app_id)
        await self.repo.delete(app.id)
        logger.info(f"Deleted app {app.slug}")
        return app
