"""FastAPI dependencies for dependency injection."""

import logging
from functools import lru_cache
from typing import Callable, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from update_registry.auth.token_client import ApiKeyPrincipal, Scope, TokenClient
from update_registry.config import Settings, get_settings
from update_registry.db.database import Database
from update_registry.db.repositories.app_repo import AppRepository
from update_registry.db.repositories.artifact_repo import ArtifactRepository, InstallerRepository
from update_registry.db.repositories.download_repo import DownloadRepository
from update_registry.db.repositories.release_repo import ReleaseRepository
from update_registry.exceptions import AuthenticationError, PermissionDeniedError
from update_registry.ratelimit.store import RateLimitStore
from update_registry.resolver.update import UpdateResolver
from update_registry.services.analytics_service import AnalyticsService
from update_registry.services.app_service import AppService
from update_registry.services.artifact_service import ArtifactService
from update_registry.services.ci_service import CIReleaseService
from update_registry.services.release_service import ReleaseService

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)


async def get_app_settings(request: Request) -> Settings:
    """Get the settings the application was created with.

    Args:
        request: FastAPI request.

    Returns:
        Application settings.
    """
    return getattr(request.app.state, "settings", None) or get_settings()


async def get_db(request: Request) -> Database:
    """Get database from request state.

    Args:
        request: FastAPI request.

    Returns:
        Database instance.
    """
    return request.state.db


async def get_rate_limiter(request: Request) -> RateLimitStore:
    """Get the application's rate-limit store."""
    return request.app.state.rate_limiter


async def get_app_repo(db: Database = Depends(get_db)) -> AppRepository:
    return AppRepository(db)


async def get_release_repo(db: Database = Depends(get_db)) -> ReleaseRepository:
    return ReleaseRepository(db)


async def get_artifact_repo(db: Database = Depends(get_db)) -> ArtifactRepository:
    return ArtifactRepository(db)


async def get_installer_repo(db: Database = Depends(get_db)) -> InstallerRepository:
    return InstallerRepository(db)


async def get_download_repo(db: Database = Depends(get_db)) -> DownloadRepository:
    return DownloadRepository(db)


async def get_app_service(repo: AppRepository = Depends(get_app_repo)) -> AppService:
    """Get app service.

    Args:
        repo: App repository.

    Returns:
        App service.
    """
    return AppService(repo)


async def get_release_service(
    repo: ReleaseRepository = Depends(get_release_repo),
    app_repo: AppRepository = Depends(get_app_repo),
) -> ReleaseService:
    """Get release service.

    Args:
        repo: Release repository.
        app_repo: App repository.

    Returns:
        Release service.
    """
    return ReleaseService(repo, app_repo)


async def get_artifact_service(
    release_repo: ReleaseRepository = Depends(get_release_repo),
    artifact_repo: ArtifactRepository = Depends(get_artifact_repo),
    installer_repo: InstallerRepository = Depends(get_installer_repo),
) -> ArtifactService:
    """Get artifact service.

    Args:
        release_repo: Release repository.
        artifact_repo: Artifact repository.
        installer_repo: Installer repository.

    Returns:
        Artifact service.
    """
    return ArtifactService(release_repo, artifact_repo, installer_repo)


async def get_ci_release_service(
    releases: ReleaseService = Depends(get_release_service),
    artifacts: ArtifactService = Depends(get_artifact_service),
) -> CIReleaseService:
    return CIReleaseService(releases, artifacts)


async def get_analytics_service(
    repo: DownloadRepository = Depends(get_download_repo),
    app_repo: AppRepository = Depends(get_app_repo),
    release_repo: ReleaseRepository = Depends(get_release_repo),
) -> AnalyticsService:
    """Get analytics service.

    Args:
        repo: Download event repository.
        app_repo: App repository.
        release_repo: Release repository.

    Returns:
        Analytics service.
    """
    return AnalyticsService(repo, app_repo, release_repo)


async def get_update_resolver(
    app_repo: AppRepository = Depends(get_app_repo),
    release_repo: ReleaseRepository = Depends(get_release_repo),
) -> UpdateResolver:
    """Get update resolver.

    Args:
        app_repo: App repository.
        release_repo: Release repository.

    Returns:
        Update resolver.
    """
    return UpdateResolver(app_repo, release_repo)


@lru_cache(maxsize=1)
def _get_token_client(jwt_secret: str) -> TokenClient:
    """Get cached token client instance.

    Args:
        jwt_secret: JWT secret for validation.

    Returns:
        Token client instance.
    """
    return TokenClient(jwt_secret=jwt_secret)


async def verify_api_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    settings: Settings = Depends(get_app_settings),
) -> Optional[ApiKeyPrincipal]:
    """Verify a bearer token if one is sent.

    Args:
        request: FastAPI request.
        credentials: HTTP authorization credentials (Bearer token).
        settings: Application settings containing the JWT secret.

    Returns:
        ApiKeyPrincipal if valid, None if missing or invalid.
    """
    if not credentials:
        return None

    principal = _get_token_client(settings.auth_jwt_secret).validate_token(credentials.credentials)
    if principal is None:
        logger.warning("Token verification failed")
        return None

    logger.debug(f"Token verified for key: {principal.key_id}")
    request.state.principal = principal
    return principal


def require_scope(*scopes: Scope) -> Callable:
    """Create a dependency that requires a token with one of ``scopes``.

    Args:
        *scopes: Accepted scopes.

    Returns:
        Dependency returning the verified principal.
    """
    allowed = frozenset(scopes)

    async def dependency(
        principal: Optional[ApiKeyPrincipal] = Depends(verify_api_token),
    ) -> ApiKeyPrincipal:
        if principal is None:
            raise AuthenticationError("Not authenticated")
        if principal.scope not in allowed:
            raise PermissionDeniedError(
                f"Token scope '{principal.scope.value}' cannot access this endpoint"
            )
        return principal

    return dependency


require_admin = require_scope(Scope.ADMIN)
require_ci = require_scope(Scope.CI, Scope.ADMIN)
