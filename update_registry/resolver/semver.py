"""Semantic versioning utilities.

Implements parsing and precedence rules of Semantic Versioning 2.0.0
(https://semver.org/). Parsing never raises: anything that is not a
strict ``MAJOR.MINOR.PATCH[-PRERELEASE][+BUILD]`` string yields ``None``.
"""

import functools
import re
from dataclasses import dataclass, field
from typing import Literal, Optional

SEMVER_PATTERN = (
    r"^([0-9]+)\.([0-9]+)\.([0-9]+)"
    r"(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)

_SEMVER_RE = re.compile(SEMVER_PATTERN, re.ASCII)

Ordering = Literal[-1, 0, 1]


@functools.total_ordering
@dataclass(frozen=True, eq=False)
class SemVer:
    """A parsed semantic version.

    Equality and ordering follow SemVer precedence, so build metadata is
    carried but never compared.

    Attributes:
        major: Major version number.
        minor: Minor version number.
        patch: Patch version number.
        prerelease: Dot-separated prerelease identifiers.
        build: Dot-separated build metadata identifiers.
    """

    major: int
    minor: int
    patch: int
    prerelease: tuple[str, ...] = field(default_factory=tuple)
    build: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_prerelease(self) -> bool:
        """Whether this version carries prerelease identifiers."""
        return bool(self.prerelease)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_semver(self, other) == 0

    def __lt__(self, other: "SemVer") -> bool:
        if not isinstance(other, SemVer):
            return NotImplemented
        return compare_semver(self, other) < 0

    def __hash__(self) -> int:
        return hash((self.major, self.minor, self.patch, self.prerelease))

    def __str__(self) -> str:
        return format_semver(self)


def parse_semver(version: str) -> Optional[SemVer]:
    """Parse a version string into its semantic version components.

    Args:
        version: Version string (e.g., "1.2.3", "1.0.0-beta.1+001").

    Returns:
        Parsed SemVer, or None if the string is not a valid version.
    """
    if not isinstance(version, str):
        return None

    match = _SEMVER_RE.match(version.strip())
    if not match:
        return None

    major, minor, patch, prerelease, build = match.groups()
    return SemVer(
        major=int(major),
        minor=int(minor),
        patch=int(patch),
        prerelease=tuple(prerelease.split(".")) if prerelease else (),
        build=tuple(build.split(".")) if build else (),
    )


def is_valid_semver(version: str) -> bool:
    """Check whether a string is a valid semantic version.

    Args:
        version: Version string.

    Returns:
        True if the string parses.
    """
    return parse_semver(version) is not None


def _is_numeric(identifier: str) -> bool:
    return identifier.isdigit()


def _compare_prerelease(a: tuple[str, ...], b: tuple[str, ...]) -> Ordering:
    """Compare two prerelease identifier sequences.

    A version without prerelease outranks one with it. Identifiers are
    compared left to right: numeric ones as integers and below any
    alphanumeric one, alphanumeric ones by code point. When all shared
    identifiers are equal the longer sequence wins.
    """
    if not a and not b:
        return 0
    if not a:
        return 1
    if not b:
        return -1

    for ident_a, ident_b in zip(a, b):
        num_a = _is_numeric(ident_a)
        num_b = _is_numeric(ident_b)

        if num_a and num_b:
            left, right = int(ident_a), int(ident_b)
            if left != right:
                return -1 if left < right else 1
        elif num_a:
            return -1
        elif num_b:
            return 1
        elif ident_a != ident_b:
            return -1 if ident_a < ident_b else 1

    if len(a) == len(b):
        return 0
    return -1 if len(a) < len(b) else 1


def compare_semver(a: SemVer, b: SemVer) -> Ordering:
    """Compare two semantic versions by precedence.

    Args:
        a: First version.
        b: Second version.

    Returns:
        -1 if a < b, 0 if equal, 1 if a > b.
    """
    left = (a.major, a.minor, a.patch)
    right = (b.major, b.minor, b.patch)
    if left != right:
        return -1 if left < right else 1
    return _compare_prerelease(a.prerelease, b.prerelease)


def compare_versions(v1: str, v2: str) -> Optional[Ordering]:
    """Compare two version strings.

    Args:
        v1: First version string.
        v2: Second version string.

    Returns:
        -1, 0 or 1, or None if either string is not a valid version.
    """
    parsed_v1 = parse_semver(v1)
    parsed_v2 = parse_semver(v2)
    if parsed_v1 is None or parsed_v2 is None:
        return None
    return compare_semver(parsed_v1, parsed_v2)


def is_newer_version(current_version: str, candidate_version: str) -> bool:
    """Determine whether the candidate is newer than the current version.

    An unparseable version on either side never counts as newer.

    Args:
        current_version: Installed version string.
        candidate_version: Version string offered as an update.

    Returns:
        True if candidate_version has higher precedence.
    """
    return compare_versions(candidate_version, current_version) == 1


def format_semver(version: SemVer) -> str:
    """Format a SemVer back to its canonical string.

    Args:
        version: Parsed version.

    Returns:
        Version string.
    """
    result = f"{version.major}.{version.minor}.{version.patch}"
    if version.prerelease:
        result += "-" + ".".join(version.prerelease)
    if version.build:
        result += "+" + ".".join(version.build)
    return result
