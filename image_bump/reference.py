"""Representation of a container image reference.

An image reference is split into the registry-qualified repository name and the
tag. The repository name may carry a registry port, e.g. `registry:5000/app`, so
the tag separator is only searched for after the final `/`.
"""

from dataclasses import dataclass
import logging

from .exceptions import InputException

__all__ = [
    "ImageReference",
]

_LOGGER = logging.getLogger(__name__)


def _find_tag_separator(ref: str) -> int:
    """Return the index of the tag colon or -1 when there is no tag."""
    search_from = max(ref.rfind("/"), 0)
    return ref.find(":", search_from)


@dataclass(frozen=True, order=True)
class ImageReference:
    """A container image name and tag."""

    name: str
    """Registry-qualified image name, e.g. `ghcr.io/openfaas/gateway`."""

    tag: str
    """The tag portion of the reference, e.g. `0.27.0`."""

    @classmethod
    def parse(cls, ref: str) -> "ImageReference":
        """Parse an `image:tag` string."""
        if (idx := _find_tag_separator(ref)) < 0:
            raise InputException(f"Image reference '{ref}' does not have a tag")
        return cls(name=ref[:idx], tag=ref[idx + 1 :])

    @classmethod
    def try_parse(cls, ref: str) -> "ImageReference | None":
        """Parse an `image:tag` string, returning None when there is no tag."""
        if "@" in ref or _find_tag_separator(ref) < 0:
            _LOGGER.debug("Skipping image reference without a tag: %s", ref)
            return None
        return cls.parse(ref)

    def with_tag(self, tag: str) -> "ImageReference":
        """Return a copy of this reference pointing at another tag."""
        return ImageReference(name=self.name, tag=tag)

    def __str__(self) -> str:
        """Render as `image:tag`."""
        return f"{self.name}:{self.tag}"
