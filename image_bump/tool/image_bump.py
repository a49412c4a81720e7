"""Command line tool for upgrading container images and actions."""

import argparse
import asyncio
import logging
import sys
import traceback

from image_bump.exceptions import ImageBumpException
from . import chart, docker, gha

_LOGGER = logging.getLogger(__name__)


def _make_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Command line utility for upgrading container images and actions.",
    )
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    )

    subparsers = parser.add_subparsers(dest="command", help="Command", required=True)

    chart.ChartAction.register(subparsers)
    docker.DockerAction.register(subparsers)
    gha.GhaAction.register(subparsers)
    return parser


def main(argv: list[str] | None = None) -> None:
    """Image-bump command line tool main entry point."""
    parser = _make_parser()
    args = parser.parse_args(argv)

    if args.log_level:
        logging.basicConfig(level=args.log_level)
    elif getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    action = args.cls()
    try:
        asyncio.run(action.run(**vars(args)))
    except ImageBumpException as err:
        if args.log_level == "DEBUG":
            traceback.print_exc(file=sys.stderr)
        print("image-bump error: ", err, file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
