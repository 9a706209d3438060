"""Platform identifier normalization and fallback chains.

Canonical platform ids have the form ``{os}-{arch}`` (e.g. ``darwin-aarch64``)
and are the lookup key for stored artifacts.
"""

from types import MappingProxyType
from typing import Mapping

# Platforms an update artifact may be published for.
ARTIFACT_PLATFORMS: frozenset[str] = frozenset(
    {
        "darwin-aarch64",
        "darwin-x86_64",
        "darwin-universal",
        "linux-x86_64",
        "linux-aarch64",
        "linux-armv7",
        "windows-x86_64",
        "windows-aarch64",
        "windows-x86",
    }
)

# Fallback targets (darwin-universal, windows-x86) must be publishable as
# artifacts, so installers and artifacts share one platform set.
INSTALLER_PLATFORMS: frozenset[str] = ARTIFACT_PLATFORMS

KNOWN_OPERATING_SYSTEMS: frozenset[str] = frozenset({"darwin", "linux", "windows"})

PLATFORM_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "macos": "darwin",
        "osx": "darwin",
        "win": "windows",
        "win64": "windows-x86_64",
        "win32": "windows-x86_64",
        "linux64": "linux-x86_64",
    }
)

OS_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "macos": "darwin",
        "osx": "darwin",
        "mac": "darwin",
        "win": "windows",
    }
)

ARCH_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "arm64": "aarch64",
        "amd64": "x86_64",
        "x64": "x86_64",
        "i386": "x86",
        "i686": "x86",
    }
)

# Looser platforms each platform can also run, in order of preference.
FALLBACK_CHAINS: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "darwin-aarch64": ("darwin-universal",),
        "darwin-x86_64": ("darwin-universal",),
        "darwin-universal": (),
        "linux-x86_64": (),
        "linux-aarch64": (),
        "linux-armv7": (),
        "windows-x86_64": ("windows-x86",),
        "windows-aarch64": ("windows-x86_64", "windows-x86"),
        "windows-x86": (),
    }
)


def normalize_platform(target: str) -> str:
    """Normalize a client-reported target to a canonical platform id.

    Unknown targets are never rejected; they come back lowercased and
    trimmed so they can still be compared against stored platforms.

    Args:
        target: Raw target string (e.g. "WIN64", "macos-aarch64").

    Returns:
        Normalized platform string.
    """
    normalized = target.strip().lower()

    alias = PLATFORM_ALIASES.get(normalized)
    if alias is not None:
        return alias

    os_name, sep, arch = normalized.partition("-")
    if not sep or not arch:
        return normalized

    os_name = OS_ALIASES.get(os_name, os_name)
    if os_name in KNOWN_OPERATING_SYSTEMS:
        arch = ARCH_ALIASES.get(arch, arch)
    return f"{os_name}-{arch}"


def fallback_chain(platform: str) -> tuple[str, ...]:
    """Get the looser platforms a canonical platform may fall back to.

    Args:
        platform: Canonical platform id.

    Returns:
        Ordered fallbacks; empty if the platform has none or is unknown.
    """
    return FALLBACK_CHAINS.get(platform, ())


def candidate_platforms(platform: str) -> tuple[str, ...]:
    """Platforms to try for an artifact lookup, exact match first."""
    return (platform, *fallback_chain(platform))
