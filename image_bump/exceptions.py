"""Exceptions related to image-bump."""

from collections.abc import Sequence

__all__ = [
    "ImageBumpException",
    "InputException",
    "VersionFormatException",
    "RegistryException",
    "ImageNotFoundException",
    "ReleaseLookupException",
    "NoCandidateException",
    "BatchException",
]


class ImageBumpException(Exception):
    """Generic base exception used for this library."""


class InputException(ImageBumpException):
    """Raised when the input files or values are not formatted as expected."""


class VersionFormatException(InputException):
    """Raised when a tag must be a semantic version but is not."""

    def __init__(self, name: str, tag: str, message: str | None = None) -> None:
        super().__init__(
            f"unable to parse tag {tag} of {name} as semver"
            + (f": {message}" if message else "")
        )
        self.name = name
        self.tag = tag


class RegistryException(ImageBumpException):
    """Raised when the tags of an image could not be listed."""


class ImageNotFoundException(RegistryException):
    """Raised when the tag of an image is not published on its registry."""


class ReleaseLookupException(ImageBumpException):
    """Raised when the latest release of a repository could not be resolved."""


class NoCandidateException(ImageBumpException):
    """Raised when no tag exists within a pinned version range."""


class BatchException(ImageBumpException):
    """Raised with every error collected while resolving a batch."""

    def __init__(self, errors: Sequence[ImageBumpException]) -> None:
        super().__init__("\n".join(str(err) for err in errors))
        self.errors = list(errors)
