"""Update resolution: decide whether a client gets an update and which artifact.

The resolver combines the SemVer engine, the platform normalizer and a
snapshot of the app's published releases. It holds no mutable state and
returns a Decision value for every domain outcome; only repository
failures raise (RepositoryError).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional, Protocol, Union

from update_registry.models.app import App
from update_registry.models.release import Artifact, Release
from update_registry.resolver.platform import candidate_platforms, normalize_platform
from update_registry.resolver.semver import SemVer, is_newer_version, parse_semver
from update_registry.timeutil import to_rfc3339

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class AppLookup(Protocol):
    async def get_by_slug(self, slug: str) -> Optional[App]: ...


class PublishedReleaseLookup(Protocol):
    async def list_published_with_artifacts(self, app_id: str) -> list[Release]: ...


class NoUpdateReason(str, Enum):
    """Why no update is offered."""

    APP_NOT_FOUND = "app_not_found"
    NO_UPDATE_AVAILABLE = "no_update_available"
    NO_ARTIFACT_FOR_PLATFORM = "no_artifact_for_platform"


@dataclass(frozen=True)
class NoUpdate:
    """Decision: nothing to install.

    Attributes:
        reason: Why no update is offered.
        app: Resolved app, when the slug was known.
    """

    reason: NoUpdateReason
    app: Optional[App] = None

    has_update = False


@dataclass(frozen=True)
class Update:
    """Decision: an update is available.

    Attributes:
        app: The app being updated.
        release: Release being offered.
        artifact: Artifact to download.
        platform: Normalized platform the client reported.
    """

    app: App
    release: Release
    artifact: Artifact
    platform: str

    has_update = True

    def to_tauri_response(self) -> dict[str, Any]:
        """Render the body the Tauri updater expects.

        Keys are emitted in the order version, notes, pub_date, url,
        signature; optional keys are left out when empty.
        """
        body: dict[str, Any] = {"version": self.release.version}
        if self.release.notes:
            body["notes"] = self.release.notes
        if self.release.pub_date is not None:
            body["pub_date"] = to_rfc3339(self.release.pub_date)
        body["url"] = self.artifact.download_url
        if self.artifact.signature:
            body["signature"] = self.artifact.signature
        return body


Decision = Union[NoUpdate, Update]


def _release_sort_key(release: Release) -> tuple:
    """Newest-first key: valid semver by precedence, then pub_date."""
    parsed = parse_semver(release.version)
    pub_date = release.pub_date or _EPOCH
    if parsed is None:
        return (0, SemVer(0, 0, 0), pub_date)
    return (1, parsed, pub_date)


def order_newest_first(releases: list[Release]) -> list[Release]:
    """Order releases by semver precedence descending; unparseable versions last."""
    return sorted(releases, key=_release_sort_key, reverse=True)


def is_servable(artifact: Artifact, app: App) -> bool:
    """Whether an artifact can be handed to a client of this app.

    It needs a download URL, and a signature whenever the app has a
    public key configured.
    """
    if not artifact.download_url:
        return False
    if app.requires_signature and not artifact.signature:
        return False
    return True


def find_artifact(
    releases: list[Release],
    platform: str,
    app: App,
) -> Optional[tuple[Release, Artifact]]:
    """Pick the newest release holding a servable artifact for the platform.

    Within a release the exact platform is tried first, then each
    fallback in order.

    Args:
        releases: Published releases with artifacts loaded.
        platform: Normalized platform.
        app: Owning app.

    Returns:
        (release, artifact) or None.
    """
    candidates = candidate_platforms(platform)
    for release in order_newest_first(releases):
        for candidate in candidates:
            artifact = release.artifact_for(candidate)
            if artifact is not None and is_servable(artifact, app):
                return release, artifact
    return None


class UpdateResolver:
    """Resolve update checks against the release store.

    Attributes:
        apps: App lookup by slug.
        releases: Published release lookup.
    """

    def __init__(self, apps: AppLookup, releases: PublishedReleaseLookup) -> None:
        """Initialize the resolver.

        Args:
            apps: App lookup by slug.
            releases: Published release lookup.
        """
        self.apps = apps
        self.releases = releases

    async def resolve(self, app_slug: str, target: str, current_version: str) -> Decision:
        """Answer one update check.

        Args:
            app_slug: App slug from the request.
            target: Raw target platform reported by the client.
            current_version: Version the client reports as installed.

        Returns:
            NoUpdate or Update.

        Raises:
            RepositoryError: If the release store fails.
        """
        app = await self.apps.get_by_slug(app_slug)
        if app is None:
            return NoUpdate(NoUpdateReason.APP_NOT_FOUND)

        platform = normalize_platform(target)

        published = await self.releases.list_published_with_artifacts(app.id)
        match = find_artifact(published, platform, app)
        if match is None:
            return NoUpdate(NoUpdateReason.NO_ARTIFACT_FOR_PLATFORM, app=app)

        release, artifact = match

        if parse_semver(current_version) is None:
            # Never update on a malformed report; logged so stuck clients are diagnosable.
            logger.warning(
                f"Unparseable current version '{current_version}' for app '{app_slug}' ({platform})"
            )
            return NoUpdate(NoUpdateReason.NO_UPDATE_AVAILABLE, app=app)

        if not is_newer_version(current_version, release.version):
            return NoUpdate(NoUpdateReason.NO_UPDATE_AVAILABLE, app=app)

        logger.debug(
            f"Update {current_version} -> {release.version} for '{app_slug}' "
            f"on {platform} via {artifact.platform}"
        )
        return Update(app=app, release=release, artifact=artifact, platform=platform)
