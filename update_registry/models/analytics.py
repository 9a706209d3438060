"""Download analytics data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from update_registry.timeutil import utcnow


class DownloadType(str, Enum):
    """Kinds of tracked downloads."""

    UPDATE = "update"
    INSTALLER = "installer"


class TimeSeriesPeriod(str, Enum):
    """Supported time-series windows."""

    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    QUARTER = "90d"


@dataclass
class DownloadEvent:
    """One served download. Append-only.

    Attributes:
        id: Unique event ID.
        app_id: App the download belongs to.
        platform: Platform that was served.
        version: Version that was served.
        download_type: Update or installer download.
        artifact_id: Served artifact, for update downloads.
        installer_id: Served installer, for installer downloads.
        ip_country: ISO country code from CDN headers.
        downloaded_at: Event timestamp.
    """

    id: str
    app_id: str
    platform: str
    version: str
    download_type: DownloadType = DownloadType.UPDATE
    artifact_id: Optional[str] = None
    installer_id: Optional[str] = None
    ip_country: Optional[str] = None
    downloaded_at: datetime = field(default_factory=utcnow)


class VersionDownloadStats(BaseModel):
    version: str
    count: int


class PlatformDownloadStats(BaseModel):
    platform: str
    count: int


class CountryDownloadStats(BaseModel):
    country: str
    count: int


class StatsPeriod(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class DownloadStatsResponse(BaseModel):
    """Grouped download counts for an app.

    Attributes:
        total_downloads: Number of events in the period.
        by_version: Counts per version, largest first.
        by_platform: Counts per platform, largest first.
        by_country: Counts per country, only when requested.
        period: Applied date bounds.
    """

    total_downloads: int
    by_version: list[VersionDownloadStats]
    by_platform: list[PlatformDownloadStats]
    by_country: Optional[list[CountryDownloadStats]] = None
    period: StatsPeriod


class TimeSeriesDataPoint(BaseModel):
    """Download count of one bucket, keyed by bucket start."""

    timestamp: datetime
    count: int


class TimeSeriesResponse(BaseModel):
    period: TimeSeriesPeriod
    data: list[TimeSeriesDataPoint]


class ReleaseDownloadStats(BaseModel):
    release_id: str
    version: str
    total_downloads: int
    by_platform: list[PlatformDownloadStats]


class DownloadSummary(BaseModel):
    total_downloads: int
    last_24h: int
    last_7d: int
    last_30d: int
