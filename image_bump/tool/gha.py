"""Command line tool for upgrading actions in GitHub Actions workflows."""

from argparse import ArgumentParser, _SubParsersAction as SubParsersAction
import logging
import pathlib
from typing import cast

import aiohttp

from image_bump import workflow
from image_bump.exceptions import InputException
from image_bump.registry import GitHubReleaseResolver

from .common import add_common_flags, add_write_flag, read_file, write_output
from .format import print_updates

_LOGGER = logging.getLogger(__name__)


class GhaUpgradeAction:
    """Upgrade actions in workflow files to the latest major version."""

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
                help="Upgrade actions in GitHub Actions workflow files to the latest major version",
                description="""Upgrade actions in GitHub Actions workflow files
                    to the latest major version, e.g. actions/checkout@v3 to
                    actions/checkout@v4. Processes all workflow files in
                    .github/workflows/ or a single file.""",
            ),
        )
        args.add_argument(
            "--file",
            "-f",
            type=pathlib.Path,
            default=pathlib.Path("."),
            help="Path to workflow file or directory",
        )
        add_write_flag(args, write_default=True)
        add_common_flags(args, verbose_default=True)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        file: pathlib.Path,
        workers: int,
        write: bool,
        verbose: bool,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        files = workflow.find_workflows(file)
        if not files:
            raise InputException(f"no workflow files found in {file}")
        _LOGGER.info("Found %d workflow file(s)", len(files))

        total_updates = 0
        async with aiohttp.ClientSession() as session:
            releases = GitHubReleaseResolver(session)
            for path in files:
                _LOGGER.info("Processing: %s", path)
                content = await read_file(path)
                result = await workflow.process_workflow(content, releases, workers)
                result.raise_for_errors()

                if verbose:
                    print_updates(
                        dict(workflow.changed_actions(result.updates)),
                        ["action", "upgrade"],
                    )
                if not result.updates:
                    continue
                updated = workflow.apply_replacements(content, result.updates)
                await write_output(path, updated, write, len(result.updates))
                total_updates += len(result.updates)

        if total_updates and write:
            _LOGGER.info(
                "Wrote %d update(s) across %d file(s)", total_updates, len(files)
            )


class GhaAction:
    """Image-bump gha action."""

    @classmethod
    def register(
        cls, subparsers: SubParsersAction  # type: ignore[type-arg]
    ) -> ArgumentParser:
        """Register the subparser commands."""
        args = cast(
            ArgumentParser,
            subparsers.add_parser(
                "gha",
                help="Manage the actions of GitHub Actions workflows",
                description="Manage the actions referenced by GitHub Actions workflows",
            ),
        )
        subcmds = args.add_subparsers(
            title="Available commands",
            required=True,
        )
        GhaUpgradeAction.register(subcmds)
        args.set_defaults(cls=cls)
        return args

    async def run(  # type: ignore[no-untyped-def]
        self,
        **kwargs,  # pylint: disable=unused-argument
    ) -> None:
        """Async Action implementation."""
        # No-op given subcommands are always the dispatch target
