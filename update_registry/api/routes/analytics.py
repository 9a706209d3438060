"""Admin download analytics routes."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from update_registry.api.deps import get_analytics_service
from update_registry.exceptions import ValidationError
from update_registry.models.analytics import (
    DownloadStatsResponse,
    DownloadSummary,
    ReleaseDownloadStats,
    TimeSeriesPeriod,
    TimeSeriesResponse,
)
from update_registry.services.analytics_service import AnalyticsService
from update_registry.timeutil import ensure_utc

router = APIRouter()


@router.get("/analytics", response_model=DownloadStatsResponse, response_model_exclude_none=True)
async def get_download_stats(
    app_id: str,
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    include_countries: bool = Query(False),
    service: AnalyticsService = Depends(get_analytics_service),
) -> DownloadStatsResponse:
    """Grouped download counts of an app.

    Args:
        app_id: App ID.
        start_date: Inclusive lower bound (ISO-8601).
        end_date: Inclusive upper bound (ISO-8601).
        include_countries: Also group by country.
        service: Analytics service.

    Returns:
        Download statistics.
    """
    if start_date is not None:
        start_date = ensure_utc(start_date)
    if end_date is not None:
        end_date = ensure_utc(end_date)
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError("start_date must not be after end_date", field="start_date")
    return await service.get_download_stats(
        app_id,
        start_date=start_date,
        end_date=end_date,
        include_countries=include_countries,
    )


@router.get("/analytics/timeseries", response_model=TimeSeriesResponse)
async def get_time_series(
    app_id: str,
    period: TimeSeriesPeriod = Query(TimeSeriesPeriod.DAY),
    service: AnalyticsService = Depends(get_analytics_service),
) -> TimeSeriesResponse:
    """Gap-filled download time series for charting."""
    return await service.get_time_series(app_id, period)


@router.get("/analytics/summary", response_model=DownloadSummary)
async def get_download_summary(
    app_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
) -> DownloadSummary:
    return await service.get_download_summary(app_id)


@router.get("/releases/{release_id}/analytics", response_model=ReleaseDownloadStats)
async def get_release_download_stats(
    app_id: str,
    release_id: str,
    service: AnalyticsService = Depends(get_analytics_service),
) -> ReleaseDownloadStats:
    return await service.get_release_download_stats(app_id, release_id)
