"""Services module for the update registry."""

from update_registry.services.analytics_service import AnalyticsService
from update_registry.services.app_service import AppService
from update_registry.services.artifact_service import ArtifactService
from update_registry.services.ci_service import CIReleaseService
from update_registry.services.release_service import ReleaseService

__all__ = [
    "AnalyticsService",
    "AppService",
    "ArtifactService",
    "CIReleaseService",
    "ReleaseService",
]
