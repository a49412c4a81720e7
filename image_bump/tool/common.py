"""Common command line utilities for the image-bump actions."""

from argparse import ArgumentParser, BooleanOptionalAction
import logging
from pathlib import Path
import sys

import aiofiles

from image_bump.exceptions import InputException
from image_bump.orchestrator import DEFAULT_CONCURRENCY

_LOGGER = logging.getLogger(__name__)


def add_common_flags(args: ArgumentParser, verbose_default: bool) -> None:
    """Add flags shared by every command that resolves references."""
    args.add_argument(
        "--verbose",
        "-v",
        default=verbose_default,
        action=BooleanOptionalAction,
        help="Verbose output, logging each reference",
    )
    args.add_argument(
        "--workers",
        "-c",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help="Number of references resolved concurrently",
    )


def add_write_flag(args: ArgumentParser, write_default: bool) -> None:
    """Add the flag selecting between writing the file and printing it."""
    args.add_argument(
        "--write",
        "-w",
        default=write_default,
        action=BooleanOptionalAction,
        help="Write the updated content back to the file, or stdout when disabled",
    )


async def write_output(
    path: Path, content: str, write: bool, num_updates: int
) -> None:
    """Write the updated content, or print it when not writing."""
    if not write:
        sys.stdout.write(content)
        return
    if not num_updates:
        _LOGGER.info("No updates for %s", path)
        return
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)
    _LOGGER.info("Wrote %d updates to: %s", num_updates, path)


async def read_file(path: Path) -> str:
    """Read the contents of a file to upgrade."""
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            return await f.read()
    except OSError as err:
        raise InputException(f"Unable to read {path}: {err}") from err
