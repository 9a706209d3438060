"""CI release routes used by build pipelines."""

from fastapi import APIRouter, Depends, status

from update_registry.api.deps import get_app_service, get_ci_release_service, require_ci
from update_registry.auth.token_client import ApiKeyPrincipal
from update_registry.exceptions import PermissionDeniedError
from update_registry.models.release import (
    ArtifactResponse,
    CIReleaseCreate,
    CIReleaseResponse,
    ReleaseResponse,
)
from update_registry.services.app_service import AppService
from update_registry.services.ci_service import CIReleaseService

router = APIRouter()


@router.post(
    "/apps/{app_slug}/releases",
    response_model=CIReleaseResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_ci_release(
    app_slug: str,
    data: CIReleaseCreate,
    principal: ApiKeyPrincipal = Depends(require_ci),
    apps: AppService = Depends(get_app_service),
    service: CIReleaseService = Depends(get_ci_release_service),
) -> CIReleaseResponse:
    """Create a release with its artifacts, optionally publishing it.

    Args:
        app_slug: Target app slug.
        data: Release, artifacts and the auto-publish flag.
        principal: Verified CI or admin key.
        apps: App service.
        service: CI release service.

    Returns:
        The release and its artifacts.

    Raises:
        PermissionDeniedError: If a CI key is bound to another app.
    """
    if not principal.can_release(app_slug):
        raise PermissionDeniedError(f"API key '{principal.key_id}' cannot release '{app_slug}'")

    app = await apps.get_app_by_slug(app_slug)
    release, artifacts = await service.create_release(app, data)
    return CIReleaseResponse(
        release=ReleaseResponse.from_release(release),
        artifacts=[ArtifactResponse.from_artifact(a) for a in artifacts],
    )
