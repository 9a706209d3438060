"""Release, artifact and installer data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from update_registry.resolver.platform import ARTIFACT_PLATFORMS, INSTALLER_PLATFORMS
from update_registry.resolver.semver import SEMVER_PATTERN, is_valid_semver
from update_registry.timeutil import utcnow


class ReleaseStatus(str, Enum):
    """Release lifecycle states."""

    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


@dataclass
class Artifact:
    """Platform-specific update bundle of a release.

    Attributes:
        id: Unique artifact ID.
        release_id: Owning release.
        platform: Canonical platform id.
        signature: Updater signature (stored, never verified).
        download_url: Public download URL.
        file_size: File size in bytes.
        checksum: File checksum.
        created_at: Creation timestamp.
    """

    id: str
    release_id: str
    platform: str
    signature: Optional[str] = None
    download_url: Optional[str] = None
    file_size: Optional[int] = None
    checksum: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Installer:
    """Standalone installer for first-time users.

    Attributes:
        id: Unique installer ID.
        release_id: Owning release.
        platform: Canonical platform id.
        filename: Original filename.
        display_name: Optional label shown on download pages.
        download_url: Public download URL.
        file_size: File size in bytes.
        checksum: File checksum.
        created_at: Creation timestamp.
    """

    id: str
    release_id: str
    platform: str
    filename: str
    display_name: Optional[str] = None
    download_url: Optional[str] = None
    file_size: Optional[int] = None
    checksum: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class Release:
    """A version of an app.

    Attributes:
        id: Unique release ID.
        app_id: Owning app.
        version: Semantic version string.
        notes: Release notes (markdown).
        pub_date: Publication timestamp, set once when published.
        status: Lifecycle status.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
        artifacts: Artifacts, populated only by queries that load them.
    """

    id: str
    app_id: str
    version: str
    notes: Optional[str] = None
    pub_date: Optional[datetime] = None
    status: ReleaseStatus = ReleaseStatus.DRAFT
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)
    artifacts: list[Artifact] = field(default_factory=list)

    def artifact_for(self, platform: str) -> Optional[Artifact]:
        """Get this release's artifact for an exact platform."""
        for artifact in self.artifacts:
            if artifact.platform == platform:
                return artifact
        return None


# Pydantic Models for API


def _check_platform(value: str, allowed: frozenset[str]) -> str:
    value = value.strip().lower()
    if value not in allowed:
        raise ValueError(f"Unsupported platform '{value}'. Expected one of: {', '.join(sorted(allowed))}")
    return value


def _check_version(value: str) -> str:
    if not is_valid_semver(value):
        raise ValueError(f"'{value}' is not a semantic version")
    return value.strip()


class ReleaseCreate(BaseModel):
    """Request model for creating a release."""

    version: str = Field(..., max_length=100, pattern=SEMVER_PATTERN)
    notes: Optional[str] = None

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        return _check_version(v)


class ReleaseUpdate(BaseModel):
    """Request model for updating a release.

    Status changes go through the lifecycle rules like the
    publish/archive endpoints.
    """

    notes: Optional[str] = None
    status: Optional[ReleaseStatus] = None


class ArtifactCreate(BaseModel):
    """Request model for registering an artifact."""

    platform: str
    download_url: str = Field(..., min_length=1, max_length=2048)
    signature: Optional[str] = None
    file_size: Optional[int] = Field(default=None, ge=0)
    checksum: Optional[str] = Field(default=None, max_length=256)

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        return _check_platform(v, ARTIFACT_PLATFORMS)


class InstallerCreate(BaseModel):
    """Request model for registering an installer."""

    platform: str
    filename: str = Field(..., min_length=1, max_length=255)
    download_url: str = Field(..., min_length=1, max_length=2048)
    display_name: Optional[str] = Field(default=None, max_length=100)
    file_size: Optional[int] = Field(default=None, ge=0)
    checksum: Optional[str] = Field(default=None, max_length=256)

    @field_validator("platform")
    @classmethod
    def validate_platform(cls, v: str) -> str:
        return _check_platform(v, INSTALLER_PLATFORMS)


class ArtifactResponse(BaseModel):
    """Artifact representation returned by the admin and CI APIs."""

    id: str
    release_id: str
    platform: str
    signature: Optional[str]
    download_url: Optional[str]
    file_size: Optional[int]
    checksum: Optional[str]
    created_at: datetime

    @classmethod
    def from_artifact(cls, artifact: Artifact) -> "ArtifactResponse":
        return cls(
            id=artifact.id,
            release_id=artifact.release_id,
            platform=artifact.platform,
            signature=artifact.signature,
            download_url=artifact.download_url,
            file_size=artifact.file_size,
            checksum=artifact.checksum,
            created_at=artifact.created_at,
        )


class InstallerResponse(BaseModel):
    """Installer representation returned by the admin API."""

    id: str
    release_id: str
    platform: str
    filename: str
    display_name: Optional[str]
    download_url: Optional[str]
    file_size: Optional[int]
    checksum: Optional[str]
    created_at: datetime

    @classmethod
    def from_installer(cls, installer: Installer) -> "InstallerResponse":
        return cls(
            id=installer.id,
            release_id=installer.release_id,
            platform=installer.platform,
            filename=installer.filename,
            display_name=installer.display_name,
            download_url=installer.download_url,
            file_size=installer.file_size,
            checksum=installer.checksum,
            created_at=installer.created_at,
        )


class ReleaseResponse(BaseModel):
    """Release representation returned by the admin and CI APIs."""

    id: str
    app_id: str
    version: str
    notes: Optional[str]
    pub_date: Optional[datetime]
    status: ReleaseStatus
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_release(cls, release: Release) -> "ReleaseResponse":
        return cls(
            id=release.id,
            app_id=release.app_id,
            version=release.version,
            notes=release.notes,
            pub_date=release.pub_date,
            status=release.status,
            created_at=release.created_at,
            updated_at=release.updated_at,
        )


class CIReleaseCreate(BaseModel):
    """Request model for the CI release endpoint.

    Attributes:
        version: Semantic version of the new release.
        notes: Optional release notes.
        artifacts: Update artifacts to attach, one per platform.
        auto_publish: Publish right after the artifacts are attached.
    """

    version: str = Field(..., max_length=100, pattern=SEMVER_PATTERN)
    notes: Optional[str] = None
    artifacts: list[ArtifactCreate] = Field(default_factory=list)
    auto_publish: bool = False

    @field_validator("version")
    @classmethod
    def validate_version(cls, v: str) -> str:
        return _check_version(v)


class CIReleaseResponse(BaseModel):
    """Result of a CI release: the release and its attached artifacts."""

    release: ReleaseResponse
    artifacts: list[ArtifactResponse]
