"""Module for working with container images in Helm chart values files."""

import logging
from pathlib import Path
from typing import Any

import aiofiles
import yaml

from .exceptions import InputException
from .reference import ImageReference

__all__ = [
    "load_values",
    "image_components",
    "filter_images",
    "apply_replacements",
]

_LOGGER = logging.getLogger(__name__)

IMAGE_KEY = "image"
DEFAULT_DEPTH = 3


async def load_values(path: Path) -> dict[str, Any]:
    """Load a values.yaml file."""
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except OSError as err:
        raise InputException(f"Unable to load {path}: {err}") from err
    try:
        values = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse {path}: {err}") from err
    if values is None:
        return {}
    if not isinstance(values, dict):
        raise InputException(
            f"Expected a mapping in {path} but was {type(values).__name__}"
        )
    return values


def image_components(
    values: dict[str, Any], depth: int = DEFAULT_DEPTH, parent: str = ""
) -> dict[str, str]:
    """Return each image reference mapped to the key path it was found at.

    The search starts at the top level and descends into nested mappings at
    most `depth` levels deep, e.g. `gateway.image`. Values that are not
    strings, or that have no tag, are skipped. An image used by several
    components is reported at the first path found.
    """
    images: dict[str, str] = {}
    for key, value in values.items():
        path = f"{parent}.{key}" if parent else str(key)
        if key == IMAGE_KEY and isinstance(value, str):
            if ImageReference.try_parse(value) is not None:
                images.setdefault(value, path)
        elif isinstance(value, dict) and depth > 0:
            for image, component in image_components(value, depth - 1, path).items():
                images.setdefault(image, component)
    return images


def filter_images(values: dict[str, Any], depth: int = DEFAULT_DEPTH) -> set[str]:
    """Return the image references found under `image` keys."""
    return set(image_components(values, depth))


def apply_replacements(content: str, replacements: dict[str, str]) -> str:
    """Replace every occurrence of each old reference in the file contents.

    The replacement is not limited to `image` keys, so the same string used
    as the value of an unrelated key is replaced too.
    """
    for old, new in replacements.items():
        content = content.replace(old, new)
    return content
