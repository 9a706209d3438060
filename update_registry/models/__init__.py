"""Data models for the update registry."""

from update_registry.models.app import (
    App,
    AppCreate,
    AppResponse,
    AppUpdate,
)
from update_registry.models.release import (
    Artifact,
    ArtifactCreate,
    ArtifactResponse,
    CIReleaseCreate,
    CIReleaseResponse,
    Installer,
    InstallerCreate,
    InstallerResponse,
    Release,
    ReleaseCreate,
    ReleaseResponse,
    ReleaseStatus,
    ReleaseUpdate,
)
from update_registry.models.analytics import (
    DownloadEvent,
    DownloadStatsResponse,
    DownloadSummary,
    DownloadType,
    ReleaseDownloadStats,
    TimeSeriesDataPoint,
    TimeSeriesPeriod,
    TimeSeriesResponse,
)

__all__ = [
    # App models
    "App",
    "AppCreate",
    "AppResponse",
    "AppUpdate",
    # Release models
    "Artifact",
    "ArtifactCreate",
    "ArtifactResponse",
    "CIReleaseCreate",
    "CIReleaseResponse",
    "Installer",
    "InstallerCreate",
    "InstallerResponse",
    "Release",
    "ReleaseCreate",
    "ReleaseResponse",
    "ReleaseStatus",
    "ReleaseUpdate",
    # Analytics models
    "DownloadEvent",
    "DownloadStatsResponse",
    "DownloadSummary",
    "DownloadType",
    "ReleaseDownloadStats",
    "TimeSeriesDataPoint",
    "TimeSeriesPeriod",
    "TimeSeriesResponse",
]
