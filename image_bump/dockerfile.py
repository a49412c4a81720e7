"""Module for working with container images in Dockerfiles.

Only `FROM` instructions are inspected and rewritten, so an image mentioned
in a comment or a `COPY --from` instruction is left alone.
"""

import logging
import re

from .reference import ImageReference

__all__ = [
    "find_images",
    "replace_image",
    "apply_replacements",
]

_LOGGER = logging.getLogger(__name__)

FROM_INSTRUCTION = "FROM "


def _is_from_line(line: str) -> bool:
    return line.strip().upper().startswith(FROM_INSTRUCTION)


def find_images(content: str) -> list[ImageReference]:
    """Return the image references from the FROM lines of a Dockerfile.

    Images with variable references in tags (containing `$`) are skipped, as
    are images without an explicit tag e.g. `scratch` or a previous stage.
    """
    images: list[ImageReference] = []
    seen: set[ImageReference] = set()

    for line in content.splitlines():
        if not _is_from_line(line):
            continue
        rest = line.strip()[len(FROM_INSTRUCTION) :].strip()

        # Skip a leading flag such as --platform=...
        if rest.startswith("--"):
            _, sep, rest = rest.partition(" ")
            if not sep:
                continue
            rest = rest.strip()

        if not (fields := rest.split()):
            continue
        if (image := ImageReference.try_parse(fields[0])) is None:
            continue
        if "$" in image.tag:
            _LOGGER.debug("Skipping image with a variable tag: %s", image)
            continue
        if image in seen:
            continue
        seen.add(image)
        images.append(image)

    return images


def replace_image(content: str, old_ref: str, new_ref: str) -> str:
    """Replace an image reference with a new one, only within FROM lines.

    The old reference must appear as a whole reference, so `alpine:3.1` does
    not match within `alpine:3.19`.
    """
    pattern = re.compile(rf"(?<![\w./-]){re.escape(old_ref)}(?![\w.-])")
    lines = content.splitlines(keepends=True)
    for i, line in enumerate(lines):
        if _is_from_line(line):
            lines[i] = pattern.sub(lambda _: new_ref, line, count=1)
    return "".join(lines)


def apply_replacements(content: str, replacements: dict[str, str]) -> str:
    """Apply every old to new image replacement to the FROM lines."""
    for old, new in replacements.items():
        content = replace_image(content, old, new)
    return content
