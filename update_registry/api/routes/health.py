"""Health check routes."""

from fastapi import APIRouter, Depends, Response, status

from update_registry.api.deps import get_db
from update_registry.db.database import Database

router = APIRouter()


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint.

    Returns:
        Health status.
    """
    return {"status": "healthy"}


@router.head("/health")
async def health_check_head() -> Response:
    """Health check HEAD endpoint.

    Returns:
        Empty response with 200 status.
    """
    return Response(status_code=200)


@router.get("/ready")
async def readiness_check(
    response: Response,
    db: Database = Depends(get_db),
) -> dict:
    """Readiness check endpoint.

    Checks database connectivity.

    Args:
        response: Outgoing response, used to set 503 when not ready.
        db: Database instance.

    Returns:
        Readiness status with component health details.
    """
    db_healthy = await db.health_check()

    if not db_healthy:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {
            "status": "not_ready",
            "errors": ["database"],
            "details": {"database": db_healthy},
        }

    return {
        "status": "ready",
        "details": {"database": db_healthy},
    }
