"""Command line tool for the images in a Helm chart values.yaml file."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
import sys
from typing import cast

import aiohttp

from image_bump import values
from image_bump.config import load_config
from image_bump.exceptions import ImageNotFoundException, InputException
from image_bump.orchestrator import resolve_all, verify_all
from image_bump.reference import ImageReference
from image_bump.registry import RegistryTagLister

from .common import add_common_flags, add_write_flag, read_file, write_output
from .format import print_table, print_updates

_LOGGER = logging.getLogger(__name__)

YAML_SUFFIXES = {".yaml", ".yml"}


class ChartUpgradeAction:
    """Upgrade all images in a values.yaml file."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "upgrade",
                help="Upgrade all images in a values.yaml file to the latest version",
                description="""Upgrade all images in a values.yaml file to the
                    latest version of the same format. Container images must be
                    specified in an `image:` field at the top level or nested up
                    to --depth levels down. Nothing is written if any image
                    fails to resolve.""",
            ),
        )
        args.add_argument(
            "--file",
            "-f",
            type=pathlib.Path,
            required=True,
            help="Path to values.yaml file",
        )
        args.add_argument(
            "--depth",
            "-d",
            type=int,
            default=values.DEFAULT_DEPTH,
            help="How many levels deep into the YAML structure to look for image: fields",
        )
        add_write_flag(args, write_default=False)
        add_common_flags(args, verbose_default=False)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path,
        depth: int,
        workers: int,
        write: bool,
        verbose: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if file.suffix not in YAML_SUFFIXES:
            raise InputException("--file must be a YAML file")

        _LOGGER.info("Verifying images in: %s", file)
        chart_values = await values.load_values(file)
        config = await load_config(file.parent)

        images = sorted(
            image
            for image in values.filter_images(chart_values, depth)
            if ImageReference.parse(image).name not in config.ignore
        )
        if not images:
            raise InputException(f"no images found in {file}")
        _LOGGER.info("Found %d images", len(images))

        async with aiohttp.ClientSession() as session:
            result = await resolve_all(
                images,
                RegistryTagLister(session),
                concurrency=workers,
                pinned=config.pin_major_minor,
            )
        result.raise_for_errors()

        content = await read_file(file)
        updated = values.apply_replacements(content, result.updates)
        if verbose:
            print_updates(result.updates, ["image", "upgrade"])
        await write_output(file, updated, write, len(result.updates))


class ChartVerifyAction:
    """Verify all images in a values.yaml file exist on their registry."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "verify",
                help="Verify images from a values.yaml file exist on the remote registry",
                description="""Verify the images in a values.yaml file exist on
                    their remote registry. Exits with a non-zero status and a
                    table of the missing images if any tag is not found.""",
            ),
        )
        args.add_argument(
            "--file",
            "-f",
            type=pathlib.Path,
            required=True,
            help="Path to values.yaml file",
        )
        args.add_argument(
            "--depth",
            "-d",
            type=int,
            default=values.DEFAULT_DEPTH,
            help="How many levels deep into the YAML structure to look for image: fields",
        )
        add_common_flags(args, verbose_default=False)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path,
        depth: int,
        workers: int,
        verbose: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        if file.suffix not in YAML_SUFFIXES:
            raise InputException("--file must be a YAML file")

        _LOGGER.info("Verifying images in: %s", file)
        chart_values = await values.load_values(file)
        components = values.image_components(chart_values, depth)
        if not components:
            raise InputException(f"no images found in {file}")
        _LOGGER.info("Found %d images", len(components))

        async with aiohttp.ClientSession() as session:
            result = await verify_all(
                sorted(components), RegistryTagLister(session), concurrency=workers
            )
        if not result.failures:
            return

        missing = sorted(result.failures.items(), key=lambda item: components[item[0]])
        print(f"{len(missing)} images are missing in {file}\n", file=sys.stderr)
        if verbose:
            headers = ["component", "image", "error"]
            rows = [[components[image], image, str(err)] for image, err in missing]
        else:
            headers = ["component", "image"]
            rows = [[components[image], image] for image, _ in missing]
        print_table(headers, rows)
        raise ImageNotFoundException(f"verifying failed for {file}")


class ChartAction:
    """Image-bump chart action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "chart",
                help="Manage the images of a Helm chart",
                description="Manage the container images referenced by a Helm chart",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        ChartUpgradeAction.register(subcmds)
        ChartVerifyAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
