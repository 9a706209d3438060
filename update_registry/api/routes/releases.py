"""Admin release routes."""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from update_registry.api.deps import get_release_service
from update_registry.models.release import ReleaseCreate, ReleaseResponse, ReleaseStatus, ReleaseUpdate
from update_registry.services.release_service import ReleaseService

router = APIRouter()


class ReleaseListResponse(BaseModel):
    """Response for release list.

    Attributes:
        releases: List of releases.
        total: Total count.
        page: Current page.
        per_page: Items per page.
    """

    releases: list[ReleaseResponse]
    total: int
    page: int
    per_page: int


@router.get("", response_model=ReleaseListResponse)
async def list_releases(
    app_id: str,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    status_filter: Optional[ReleaseStatus] = Query(None, alias="status"),
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseListResponse:
    """List releases of an app.

    Args:
        app_id: App ID.
        page: Page number.
        per_page: Items per page.
        status_filter: Only releases in this status.
        service: Release service.

    Returns:
        Paginated release list, newest first.
    """
    releases, total = await service.list_releases(
        app_id,
        status=status_filter,
        page=page,
        per_page=per_page,
    )
    return ReleaseListResponse(
        releases=[ReleaseResponse.from_release(r) for r in releases],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=ReleaseResponse, status_code=status.HTTP_201_CREATED)
async def create_release(
    app_id: str,
    data: ReleaseCreate,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    """Create a draft release."""
    release = await service.create_release(app_id, data)
    return ReleaseResponse.from_release(release)


@router.get("/{release_id}", response_model=ReleaseResponse)
async def get_release(
    app_id: str,
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    release = await service.get_release(app_id, release_id)
    return ReleaseResponse.from_release(release)


@router.patch("/{release_id}", response_model=ReleaseResponse)
async def update_release(
    app_id: str,
    release_id: str,
    data: ReleaseUpdate,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    """Update release notes and/or status.

    Status changes follow the same rules as the publish and archive
    endpoints.
    """
    release = await service.update_release(app_id, release_id, data)
    return ReleaseResponse.from_release(release)


@router.delete("/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_release(
    app_id: str,
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
) -> Response:
    """Delete a draft release. Published releases must be archived instead."""
    await service.delete_release(app_id, release_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{release_id}/publish", response_model=ReleaseResponse)
async def publish_release(
    app_id: str,
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    release = await service.publish_release(app_id, release_id)
    return ReleaseResponse.from_release(release)


@router.post("/{release_id}/archive", response_model=ReleaseResponse)
async def archive_release(
    app_id: str,
    release_id: str,
    service: ReleaseService = Depends(get_release_service),
) -> ReleaseResponse:
    release = await service.archive_release(app_id, release_id)
    return ReleaseResponse.from_release(release)
