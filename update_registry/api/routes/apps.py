"""Admin app routes."""

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel

from update_registry.api.deps import get_app_service
from update_registry.models.app import AppCreate, AppResponse, AppUpdate
from update_registry.services.app_service import AppService

router = APIRouter()


class AppListResponse(BaseModel):
    """Response for app list.

    Attributes:
        apps: List of apps.
        total: Total count.
        page: Current page.
        per_page: Items per page.
    """

    apps: list[AppResponse]
    total: int
    page: int
    per_page: int


@router.get("", response_model=AppListResponse)
async def list_apps(
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    service: AppService = Depends(get_app_service),
) -> AppListResponse:
    """List apps with pagination.

    Args:
        page: Page number.
        per_page: Items per page.
        service: App service.

    Returns:
        Paginated app list.
    """
    apps, total = await service.list_apps(page=page, per_page=per_page)
    return AppListResponse(
        apps=[AppResponse.from_app(app) for app in apps],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.post("", response_model=AppResponse, status_code=status.HTTP_201_CREATED)
async def create_app(
    data: AppCreate,
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    """Register an app.

    Args:
        data: App creation data.
        service: App service.

    Returns:
        Created app.
    """
    app = await service.create_app(data)
    return AppResponse.from_app(app)


@router.get("/{app_id}", response_model=AppResponse)
async def get_app(
    app_id: str,
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    app = await service.get_app(app_id)
    return AppResponse.from_app(app)


@router.patch("/{app_id}", response_model=AppResponse)
async def update_app(
    app_id: str,
    data: AppUpdate,
    service: AppService = Depends(get_app_service),
) -> AppResponse:
    """Update an app's name, description or public key."""
    app = await service.update_app(app_id, data)
    return AppResponse.from_app(app)


@router.delete("/{app_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_app(
    app_id: str,
    service: AppService = Depends(get_app_service),
) -> Response:
    """Delete an app with all releases, files and download events."""
    await service.delete_app(app_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
