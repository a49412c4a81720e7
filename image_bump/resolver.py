"""Resolve the newest compatible version of a single image reference."""

import logging

from .exceptions import ImageNotFoundException, VersionFormatException
from .reference import ImageReference
from .registry import TagLister
from .tags import is_upgradeable, parse_version, resolve_pinned, select_candidate

__all__ = [
    "update_image",
    "update_image_pinned",
    "verify_image",
]

_LOGGER = logging.getLogger(__name__)


async def update_image(reference: str, lister: TagLister) -> str | None:
    """Return the upgraded `image:tag` reference or None if already current.

    An image without any remote tag of the same format as the current tag is
    left unchanged rather than treated as an error.
    """
    image = ImageReference.parse(reference)
    remote_tags = await lister.list_tags(image.name)

    if (candidate := select_candidate(remote_tags, image.tag)) is None:
        _LOGGER.debug(
            "No semver tags of the current format found for %s", image.name
        )
        return None

    if not is_upgradeable(image.tag, candidate):
        _LOGGER.debug("[%s] %s is current (newest %s)", image.name, image.tag, candidate)
        return None

    _LOGGER.info("[%s] %s => %s", image.name, image.tag, candidate)
    return str(image.with_tag(candidate))


async def update_image_pinned(reference: str, lister: TagLister) -> str | None:
    """Return the newest patch release within the current major.minor range.

    The current tag must be a semantic version; this is checked before the
    registry is contacted.
    """
    image = ImageReference.parse(reference)
    if parse_version(image.tag) is None:
        raise VersionFormatException(image.name, image.tag)

    remote_tags = await lister.list_tags(image.name)
    updated, new_reference = resolve_pinned(image.name, image.tag, remote_tags)
    return new_reference if updated else None


async def verify_image(reference: str, lister: TagLister) -> None:
    """Check the tag of an image reference is published on its registry."""
    image = ImageReference.parse(reference)
    if image.tag not in await lister.list_tags(image.name):
        raise ImageNotFoundException(f"tag {image.tag} not found for {image.name}")
    _LOGGER.debug("[%s] %s exists", image.name, image.tag)
