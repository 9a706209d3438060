"""Main API router configuration."""

from fastapi import APIRouter, Depends

from update_registry.api.deps import require_admin
from update_registry.api.ratelimit import rate_limit
from update_registry.api.routes import (
    analytics,
    apps,
    artifacts,
    ci,
    health,
    releases,
    updates,
)


def create_router() -> APIRouter:
    """Create the main API router with all routes.

    Returns:
        Configured APIRouter.
    """
    router = APIRouter()

    # Health check routes
    router.include_router(
        health.router,
        tags=["health"],
    )

    # Admin routes
    admin = APIRouter(
        prefix="/admin",
        dependencies=[Depends(rate_limit("admin")), Depends(require_admin)],
    )
    admin.include_router(
        apps.router,
        prefix="/apps",
        tags=["apps"],
    )
    admin.include_router(
        releases.router,
        prefix="/apps/{app_id}/releases",
        tags=["releases"],
    )
    admin.include_router(
        artifacts.router,
        prefix="/apps/{app_id}/releases/{release_id}",
        tags=["artifacts"],
    )
    admin.include_router(
        analytics.router,
        prefix="/apps/{app_id}",
        tags=["analytics"],
    )
    router.include_router(admin)

    # CI routes
    router.include_router(
        ci.router,
        prefix="/ci",
        tags=["ci"],
        dependencies=[Depends(rate_limit("ci"))],
    )

    # Update check routes; registered last since their paths start with a slug
    router.include_router(
        updates.router,
        tags=["updates"],
    )

    return router
