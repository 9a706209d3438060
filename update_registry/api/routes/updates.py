"""Public update-check routes consumed by the Tauri updater."""

import logging
from typing import Mapping, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Request, Response
from fastapi.responses import JSONResponse

from update_registry.api.deps import get_analytics_service, get_update_resolver
from update_registry.api.ratelimit import rate_limit
from update_registry.exceptions import AppNotFoundError, ValidationError
from update_registry.models.analytics import DownloadType
from update_registry.resolver.semver import SEMVER_PATTERN
from update_registry.resolver.update import NoUpdate, NoUpdateReason, UpdateResolver
from update_registry.services.analytics_service import AnalyticsService

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(rate_limit("public"))])

TARGET_MAX_LENGTH = 50

# CDN headers carrying the client's ISO country code, in order of trust.
COUNTRY_HEADERS = (
    "cf-ipcountry",
    "x-country-code",
    "x-vercel-ip-country",
    "cloudfront-viewer-country",
)


def request_country(headers: Mapping[str, str]) -> Optional[str]:
    """Country code of the client as reported by the CDN, if any.

    Cloudflare reports ``XX`` for unknown locations; that value is skipped.
    """
    for name in COUNTRY_HEADERS:
        value = (headers.get(name) or "").strip().upper()
        if value and value != "XX":
            return value
    return None


async def _respond(
    app_slug: str,
    target: str,
    current_version: str,
    country: Optional[str],
    resolver: UpdateResolver,
    analytics: AnalyticsService,
    background_tasks: BackgroundTasks,
) -> Response:
    decision = await resolver.resolve(app_slug, target, current_version)

    if isinstance(decision, NoUpdate):
        if decision.reason == NoUpdateReason.APP_NOT_FOUND:
            raise AppNotFoundError(app_slug)
        return Response(status_code=204)

    # Runs after the response is sent; failures are logged, never surfaced.
    background_tasks.add_task(
        analytics.record_download_safely,
        app_id=decision.app.id,
        platform=decision.platform,
        version=decision.release.version,
        download_type=DownloadType.UPDATE,
        artifact_id=decision.artifact.id,
        ip_country=country,
    )
    return JSONResponse(content=decision.to_tauri_response(), background=background_tasks)


async def get_request_country(request: Request) -> Optional[str]:
    return request_country(request.headers)


@router.get("/{app_slug}/update/{target}/{current_version}")
async def check_update(
    background_tasks: BackgroundTasks,
    app_slug: str = Path(..., min_length=2, max_length=50),
    target: str = Path(..., min_length=1, max_length=TARGET_MAX_LENGTH),
    current_version: str = Path(..., max_length=100, pattern=SEMVER_PATTERN),
    country: Optional[str] = Depends(get_request_country),
    resolver: UpdateResolver = Depends(get_update_resolver),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Check for an update.

    Args:
        background_tasks: Tasks run after the response is sent.
        app_slug: App slug.
        target: Client platform, e.g. ``darwin-aarch64``.
        current_version: Installed version.
        country: Client country from CDN headers.
        resolver: Update resolver.
        analytics: Analytics service.

    Returns:
        200 with the update manifest, or 204 when there is nothing to install.

    Raises:
        AppNotFoundError: If the slug is unknown.
    """
    return await _respond(app_slug, target, current_version, country, resolver, analytics, background_tasks)


@router.get("/{app_slug}/update/{target}/{arch}/{current_version}")
async def check_update_with_arch(
    background_tasks: BackgroundTasks,
    app_slug: str = Path(..., min_length=2, max_length=50),
    target: str = Path(..., min_length=1, max_length=TARGET_MAX_LENGTH),
    arch: str = Path(..., min_length=1, max_length=TARGET_MAX_LENGTH),
    current_version: str = Path(..., max_length=100, pattern=SEMVER_PATTERN),
    country: Optional[str] = Depends(get_request_country),
    resolver: UpdateResolver = Depends(get_update_resolver),
    analytics: AnalyticsService = Depends(get_analytics_service),
) -> Response:
    """Check for an update, legacy form with the architecture as its own segment.

    ``/{slug}/update/darwin/aarch64/1.0.0`` is answered exactly like
    ``/{slug}/update/darwin-aarch64/1.0.0``.
    """
    combined = f"{target}-{arch}"
    if len(combined) > TARGET_MAX_LENGTH:
        raise ValidationError(
            f"Target '{combined}' exceeds {TARGET_MAX_LENGTH} characters",
            field="target",
        )
    return await _respond(app_slug, combined, current_version, country, resolver, analytics, background_tasks)
