"""Command line tool for upgrading images in a Dockerfile."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

import aiohttp

from image_bump import dockerfile
from image_bump.config import load_config
from image_bump.exceptions import InputException
from image_bump.orchestrator import resolve_all
from image_bump.registry import RegistryTagLister

from .common import add_common_flags, add_write_flag, read_file, write_output
from .format import print_updates

_LOGGER = logging.getLogger(__name__)


class DockerUpgradeAction:
    """Upgrade selected images in a Dockerfile."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "upgrade",
                aliases=["u"],
                help="Upgrade images in a Dockerfile to the latest version",
                description="""Upgrade container images in a Dockerfile to the
                    latest version. Only images given with --image or listed in
                    an image-bump.yaml file beside the Dockerfile are upgraded.
                    Images using variable substitution in tags are skipped. Use
                    --pin-major-minor to constrain an image to patch updates
                    within its current major.minor version, e.g. golang:1.24
                    upgrades to 1.24.4 but not to 1.25.""",
            ),
        )
        args.add_argument(
            "--file",
            "-f",
            type=pathlib.Path,
            default=pathlib.Path("Dockerfile"),
            help="Path to Dockerfile",
        )
        args.add_argument(
            "--image",
            "-i",
            action="append",
            default=[],
            help="Image name to upgrade (specify multiple times)",
        )
        args.add_argument(
            "--pin-major-minor",
            action="append",
            default=[],
            help="Pin an image to its major.minor version, upgrading only the patch "
            "(specify multiple times)",
        )
        add_write_flag(args, write_default=True)
        add_common_flags(args, verbose_default=True)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path,
        image: list[str],
        pin_major_minor: list[str],
        workers: int,
        write: bool,
        verbose: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        config = (await load_config(file.parent)).merge(image, pin_major_minor)
        if not config.images:
            raise InputException(
                "specify images to upgrade via --image flag or images list in image-bump.yaml"
            )

        content = await read_file(file)
        found = dockerfile.find_images(content)
        if not found:
            raise InputException(f"no images found in {file}")

        allowed = set(config.images) - set(config.ignore)
        to_update = [str(ref) for ref in found if ref.name in allowed]
        _LOGGER.info("Found %d images, %d to upgrade", len(found), len(to_update))

        async with aiohttp.ClientSession() as session:
            result = await resolve_all(
                to_update,
                RegistryTagLister(session),
                concurrency=workers,
                pinned=config.pin_major_minor,
            )
        result.raise_for_errors()

        updated = dockerfile.apply_replacements(content, result.updates)
        if verbose:
            print_updates(result.updates, ["image", "upgrade"])
        await write_output(file, updated, write, len(result.updates))


class DockerAction:
    """Image-bump docker action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "docker",
                help="Manage the images of a Dockerfile",
                description="Manage the base images referenced by a Dockerfile",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        DockerUpgradeAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
