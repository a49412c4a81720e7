"""Library for comparing container image tags.

Tags are compared as semantic versions, but a candidate tag is only offered
as an upgrade when it has the same format as the current tag. For example a
current tag of `1.2` is only upgraded to another `major.minor` tag, and a
current tag of `1.2.3-alpine` only to another `major.minor.patch-suffix` tag.
"""

from collections.abc import Iterable
from dataclasses import dataclass
import logging
import re

import semver

from .exceptions import NoCandidateException, VersionFormatException
from .reference import ImageReference

__all__ = [
    "TagAttributes",
    "get_tag_attributes",
    "parse_version",
    "select_candidate",
    "is_upgradeable",
    "resolve_pinned",
]

_LOGGER = logging.getLogger(__name__)

LATEST = "latest"
SUFFIX_SEPARATOR = "-"
LEVEL_SEPARATOR = "."

# Numeric levels may have leading zeros, unlike strict semver
_IDENTIFIERS = r"[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*"
_VERSION_RE = re.compile(
    r"[vV]?(?P<major>\d+)(?:\.(?P<minor>\d+))?(?:\.(?P<patch>\d+))?"
    rf"(?:-(?P<prerelease>{_IDENTIFIERS}))?(?:\+(?P<build>{_IDENTIFIERS}))?"
)


@dataclass(frozen=True)
class TagAttributes:
    """Describes the format of a container image tag."""

    has_suffix: bool
    has_major: bool
    has_minor: bool
    has_patch: bool
    original: str = ""

    def matches(self, other: "TagAttributes") -> bool:
        """Return true if both tags have the same version format."""
        return (
            self.has_major == other.has_major
            and self.has_minor == other.has_minor
            and self.has_patch == other.has_patch
            and self.has_suffix == other.has_suffix
        )


def get_tag_attributes(tag: str) -> TagAttributes:
    """Return the attributes of a tag string.

    Tags with four or more version levels e.g. `1.2.3.4` are reported as
    having no patch level.
    """
    parts = tag.split(SUFFIX_SEPARATOR)
    levels = parts[0].split(LEVEL_SEPARATOR)
    return TagAttributes(
        has_suffix=len(parts) > 1,
        has_major=levels[0] != "",
        has_minor=len(levels) >= 2,
        has_patch=len(levels) == 3,
        original=tag,
    )


def parse_version(tag: str) -> semver.Version | None:
    """Parse a tag as a semantic version, returning None if it is not one.

    A leading `v` is accepted, missing minor or patch levels are zero, and
    numeric levels may be zero padded as in `22.04` or `2024.01.15`.
    """
    if (match := _VERSION_RE.fullmatch(tag)) is None:
        return None
    return semver.Version(
        int(match["major"]),
        int(match["minor"] or 0),
        int(match["patch"] or 0),
        match["prerelease"],
        match["build"],
    )


def _parse_tags(tags: Iterable[str]) -> list[tuple[semver.Version, str]]:
    """Parse the tags that are valid versions, sorted newest first.

    Equal versions are ordered by their original string so that the order of
    the input never changes the result.
    """
    parsed = []
    for tag in tags:
        if (version := parse_version(tag)) is not None:
            parsed.append((version, tag))
    parsed.sort(reverse=True)
    return parsed


def select_candidate(discovered_tags: Iterable[str], current_tag: str) -> str | None:
    """Return the newest discovered tag with the same format as the current tag.

    Tags that are not semantic versions are ignored. Returns None when there
    is no tag of the same format.
    """
    candidates = _parse_tags(discovered_tags)
    if not candidates:
        return None

    current = get_tag_attributes(current_tag)
    for _, candidate in candidates:
        if current.matches(get_tag_attributes(candidate)):
            return candidate
    _LOGGER.debug("No candidate with the format of %s", current_tag)
    return None


def is_upgradeable(current: str, candidate: str) -> bool:
    """Return true if the candidate tag is a newer version than current.

    A floating `latest` tag is never upgraded, and a candidate must have the
    same prerelease as the current tag, so `1.0.0` is never moved to `1.0.1-rc1`.
    """
    if current.lower() == LATEST:
        return False

    current_version = parse_version(current)
    candidate_version = parse_version(candidate)
    if current_version is None or candidate_version is None:
        return False

    return (
        candidate_version > current_version
        and candidate_version.prerelease == current_version.prerelease
    )


def resolve_pinned(
    image_name: str, current_tag: str, remote_tags: Iterable[str]
) -> tuple[bool, str]:
    """Find a newer patch version within the same major.minor range.

    For example, golang:1.24 would find 1.24.4 but not 1.25. Returns whether
    the image was updated and the resulting `image:tag` reference.
    """
    current_ref = str(ImageReference(image_name, current_tag))
    if (current := parse_version(current_tag)) is None:
        raise VersionFormatException(image_name, current_tag)

    unpatched = f"{current.major}.{current.minor}"
    prefix = f"{unpatched}."

    in_range = (
        tag for tag in remote_tags if tag.startswith(prefix) or tag == unpatched
    )
    candidates = [
        (version, tag)
        for version, tag in _parse_tags(in_range)
        if version.prerelease == current.prerelease
    ]
    if not candidates:
        raise NoCandidateException(
            f"no valid tags found for {image_name} within {unpatched}.x"
        )

    _, latest = candidates[0]
    if not is_upgradeable(current_tag, latest):
        return False, current_ref

    _LOGGER.info(
        "[%s] %s => %s (pinned to %s.x)", image_name, current_tag, latest, unpatched
    )
    return True, str(ImageReference(image_name, latest))
