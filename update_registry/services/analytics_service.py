"""Download analytics: event recording and aggregate reads."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from update_registry.db.repositories.app_repo import AppRepository
from update_registry.db.repositories.download_repo import DAY_PREFIX, HOUR_PREFIX, DownloadRepository
from update_registry.db.repositories.release_repo import ReleaseRepository
from update_registry.exceptions import AppNotFoundError, ReleaseNotFoundError
from update_registry.models.analytics import (
    CountryDownloadStats,
    DownloadEvent,
    DownloadStatsResponse,
    DownloadSummary,
    DownloadType,
    PlatformDownloadStats,
    ReleaseDownloadStats,
    StatsPeriod,
    TimeSeriesDataPoint,
    TimeSeriesPeriod,
    TimeSeriesResponse,
    VersionDownloadStats,
)
from update_registry.timeutil import Clock, ensure_utc, utcnow

logger = logging.getLogger(__name__)

UNKNOWN_COUNTRY = "Unknown"

# period -> (lookback, bucket width, stored-timestamp prefix length)
_PERIODS: dict[TimeSeriesPeriod, tuple[timedelta, timedelta, int]] = {
    TimeSeriesPeriod.DAY: (timedelta(hours=24), timedelta(hours=1), HOUR_PREFIX),
    TimeSeriesPeriod.WEEK: (timedelta(days=7), timedelta(days=1), DAY_PREFIX),
    TimeSeriesPeriod.MONTH: (timedelta(days=30), timedelta(days=1), DAY_PREFIX),
    TimeSeriesPeriod.QUARTER: (timedelta(days=90), timedelta(days=1), DAY_PREFIX),
}


def bucket_start(moment: datetime, width: timedelta) -> datetime:
    """Truncate a moment to the start of its hourly or daily UTC bucket."""
    moment = ensure_utc(moment)
    if width >= timedelta(days=1):
        return moment.replace(hour=0, minute=0, second=0, microsecond=0)
    return moment.replace(minute=0, second=0, microsecond=0)


def series_start(period: TimeSeriesPeriod, now: datetime) -> datetime:
    """First bucket of a series: the bucket containing ``now - period``."""
    lookback, width, _ = _PERIODS[period]
    return bucket_start(ensure_utc(now) - lookback, width)


def fill_time_series_gaps(
    bucket_counts: dict[str, int],
    period: TimeSeriesPeriod,
    now: datetime,
) -> list[TimeSeriesDataPoint]:
    """Expand sparse bucket counts into a contiguous, evenly spaced series.

    The series runs from the bucket containing ``now - period`` through
    the bucket containing ``now``, both inclusive, so ``24h`` yields 25
    hourly points and ``7d`` yields 8 daily points. Buckets missing from
    ``bucket_counts`` get ``count=0``.

    Args:
        bucket_counts: Counts keyed by the stored-timestamp prefix of the
            bucket (``2024-01-15T10`` for hours, ``2024-01-15`` for days).
        period: Series period.
        now: Reference time.

    Returns:
        Data points keyed by bucket start, oldest first.
    """
    _, width, prefix_length = _PERIODS[period]
    current = series_start(period, now)
    last = bucket_start(now, width)

    points = []
    while current <= last:
        key = current.isoformat()[:prefix_length]
        points.append(TimeSeriesDataPoint(timestamp=current, count=bucket_counts.get(key, 0)))
        current += width
    return points


class AnalyticsService:
    """Service for download analytics.

    Attributes:
        repo: Download event repository.
        app_repo: App repository.
        release_repo: Release repository.
        clock: Source of the current time.
    """

    def __init__(
        self,
        repo: DownloadRepository,
        app_repo: AppRepository,
        release_repo: ReleaseRepository,
        clock: Clock = utcnow,
    ) -> None:
        """Initialize the service.

        Args:
            repo: Download event repository.
            app_repo: App repository.
            release_repo: Release repository.
            clock: Source of the current time (injected for tests).
        """
        self.repo = repo
        self.app_repo = app_repo
        self.release_repo = release_repo
        self.clock = clock

    async def _require_app(self, app_id: str) -> None:
        if await self.app_repo.get_by_id(app_id) is None:
            raise AppNotFoundError(app_id)

    async def record_download(
        self,
        app_id: str,
        platform: str,
        version: str,
        download_type: DownloadType = DownloadType.UPDATE,
        artifact_id: Optional[str] = None,
        installer_id: Optional[str] = None,
        ip_country: Optional[str] = None,
    ) -> DownloadEvent:
        """Append a download event.

        Returns:
            Stored event.
        """
        event = DownloadEvent(
            id="",
            app_id=app_id,
            platform=platform,
            version=version,
            download_type=download_type,
            artifact_id=artifact_id,
            installer_id=installer_id,
            ip_country=ip_country,
            downloaded_at=self.clock(),
        )
        return await self.repo.insert(event)

    async def record_download_safely(self, **kwargs) -> Optional[DownloadEvent]:
        """Record a download without ever raising.

        Used from background tasks after the response is sent. Failures are
        logged and dropped; there is no retry.

        Args:
            **kwargs: Arguments of ``record_download``.

        Returns:
            Stored event, or None if recording failed.
        """
        try:
            return await self.record_download(**kwargs)
        except Exception as e:
            logger.error(
                f"Failed to record download for app {kwargs.get('app_id')} "
                f"({kwargs.get('platform')} {kwargs.get('version')}): {e}"
            )
            return None

    async def get_download_stats(
        self,
        app_id: str,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        include_countries: bool = False,
    ) -> DownloadStatsResponse:
        """Grouped download counts over an optional date range.

        Args:
            app_id: App ID.
            start_date: Inclusive lower bound.
            end_date: Inclusive upper bound.
            include_countries: Also group by country.

        Returns:
            Totals grouped by version, platform and optionally country,
            each sorted by count descending.

        Raises:
            AppNotFoundError: If the app does not exist.
        """
        await self._require_app(app_id)

        total = await self.repo.count(app_id, start_date, end_date)
        by_version = await self.repo.group_counts(app_id, "version", start_date, end_date)
        by_platform = await self.repo.group_counts(app_id, "platform", start_date, end_date)

        by_country = None
        if include_countries:
            rows = await self.repo.group_counts(app_id, "ip_country", start_date, end_date)
            merged: dict[str, int] = {}
            for country, count in rows:
                key = country or UNKNOWN_COUNTRY
                merged[key] = merged.get(key, 0) + count
            by_country = [
                CountryDownloadStats(country=country, count=count)
                for country, count in sorted(merged.items(), key=lambda item: (-item[1], item[0]))
            ]

        return DownloadStatsResponse(
            total_downloads=total,
            by_version=[VersionDownloadStats(version=v, count=c) for v, c in by_version],
            by_platform=[PlatformDownloadStats(platform=p, count=c) for p, c in by_platform],
            by_country=by_country,
            period=StatsPeriod(start=start_date, end=end_date),
        )

    async def get_time_series(self, app_id: str, period: TimeSeriesPeriod) -> TimeSeriesResponse:
        """Gap-filled download counts for charting.

        Raises:
            AppNotFoundError: If the app does not exist.
        """
        await self._require_app(app_id)

        now = self.clock()
        _, _, prefix_length = _PERIODS[period]
        counts = await self.repo.bucket_counts(app_id, series_start(period, now), prefix_length)
        return TimeSeriesResponse(period=period, data=fill_time_series_gaps(counts, period, now))

    async def get_release_download_stats(self, app_id: str, release_id: str) -> ReleaseDownloadStats:
        """Download totals of one release, by platform.

        Raises:
            ReleaseNotFoundError: If the release does not exist.
        """
        release = await self.release_repo.get_by_id(release_id, app_id=app_id)
        if release is None:
            raise ReleaseNotFoundError(release_id)

        rows = await self.repo.platform_counts_for_version(app_id, release.version)
        return ReleaseDownloadStats(
            release_id=release.id,
            version=release.version,
            total_downloads=sum(count for _, count in rows),
            by_platform=[PlatformDownloadStats(platform=p, count=c) for p, c in rows],
        )

    async def get_download_summary(self, app_id: str) -> DownloadSummary:
        """All-time and recent download totals.

        Raises:
            AppNotFoundError: If the app does not exist.
        """
        await self._require_app(app_id)

        now = self.clock()
        return DownloadSummary(
            total_downloads=await self.repo.count(app_id),
            last_24h=await self.repo.count(app_id, start=now - timedelta(hours=24)),
            last_7d=await self.repo.count(app_id, start=now - timedelta(days=7)),
            last_30d=await self.repo.count(app_id, start=now - timedelta(days=30)),
        )
