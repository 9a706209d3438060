"""Release lifecycle rules.

States move ``draft -> published -> archived`` or ``draft -> archived``.
Nothing leaves ``archived``. Every illegal transition raises
ReleaseStatusError instead of being ignored.
"""

from datetime import datetime

from update_registry.exceptions import ReleaseStatusError
from update_registry.models.release import Release, ReleaseStatus

ATTACHABLE_STATUSES = frozenset({ReleaseStatus.DRAFT, ReleaseStatus.PUBLISHED})
ARCHIVABLE_STATUSES = frozenset({ReleaseStatus.DRAFT, ReleaseStatus.PUBLISHED})


def publish(release: Release, now: datetime) -> Release:
    """Move a draft release to published and stamp its publication date.

    Args:
        release: Release to publish (mutated in place).
        now: Current time.

    Returns:
        The same release.

    Raises:
        ReleaseStatusError: If the release is not a draft.
    """
    if release.status != ReleaseStatus.DRAFT:
        raise ReleaseStatusError(
            f"Release {release.version} cannot be published from status '{release.status.value}'"
        )
    release.status = ReleaseStatus.PUBLISHED
    release.pub_date = now
    release.updated_at = now
    return release


def archive(release: Release, now: datetime) -> Release:
    """Archive a draft or published release.

    Raises:
        ReleaseStatusError: If the release is already archived.
    """
    if release.status not in ARCHIVABLE_STATUSES:
        raise ReleaseStatusError(
            f"Release {release.version} cannot be archived from status '{release.status.value}'"
        )
    release.status = ReleaseStatus.ARCHIVED
    release.updated_at = now
    return release


def ensure_deletable(release: Release) -> None:
    """Only drafts may be deleted; published history is archived instead."""
    if release.status != ReleaseStatus.DRAFT:
        raise ReleaseStatusError(
            f"Release {release.version} is {release.status.value} and can only be archived, not deleted"
        )


def ensure_attachable(release: Release) -> None:
    """Artifacts and installers can be added to draft or published releases."""
    if release.status not in ATTACHABLE_STATUSES:
        raise ReleaseStatusError(
            f"Cannot attach files to release {release.version} in status '{release.status.value}'"
        )


def transition(release: Release, target: ReleaseStatus, now: datetime) -> Release:
    """Apply a requested status change through the matching rule.

    Args:
        release: Release to change.
        target: Requested status.
        now: Current time.

    Returns:
        The updated release.

    Raises:
        ReleaseStatusError: For any transition the lifecycle forbids,
            including moving back to draft.
    """
    if target == ReleaseStatus.PUBLISHED:
        return publish(release, now)
    if target == ReleaseStatus.ARCHIVED:
        return archive(release, now)
    raise ReleaseStatusError(
        f"Release {release.version} cannot move from '{release.status.value}' to '{target.value}'"
    )
