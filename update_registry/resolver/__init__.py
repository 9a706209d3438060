"""Version and platform resolution for the update registry.

The update resolver itself lives in ``update_registry.resolver.update``;
it depends on the models, which import from this package.
"""

from update_registry.resolver.platform import (
    ARTIFACT_PLATFORMS,
    INSTALLER_PLATFORMS,
    candidate_platforms,
    fallback_chain,
    normalize_platform,
)
from update_registry.resolver.semver import (
    SEMVER_PATTERN,
    SemVer,
    compare_semver,
    compare_versions,
    format_semver,
    is_newer_version,
    is_valid_semver,
    parse_semver,
)

__all__ = [
    "ARTIFACT_PLATFORMS",
    "INSTALLER_PLATFORMS",
    "candidate_platforms",
    "fallback_chain",
    "normalize_platform",
    "SEMVER_PATTERN",
    "SemVer",
    "compare_semver",
    "compare_versions",
    "format_semver",
    "is_newer_version",
    "is_valid_semver",
    "parse_semver",
]
