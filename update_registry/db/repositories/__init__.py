"""Database repositories."""

from update_registry.db.repositories.app_repo import AppRepository
from update_registry.db.repositories.artifact_repo import ArtifactRepository, InstallerRepository
from update_registry.db.repositories.download_repo import DownloadRepository
from update_registry.db.repositories.release_repo import ReleaseRepository

__all__ = [
    "AppRepository",
    "ArtifactRepository",
    "DownloadRepository",
    "InstallerRepository",
    "ReleaseRepository",
]
