"""Configuration file for image-bump.

An `image-bump.yaml` file may be placed beside a Dockerfile or values.yaml
file to select which images are upgraded:

```yaml
images:
- ghcr.io/openfaas/of-watchdog
- golang

pin_major_minor:
- golang

ignore:
- ghcr.io/openfaas/legacy
```
"""

from dataclasses import dataclass, field
import logging
from pathlib import Path

import aiofiles
from mashumaro import DataClassDictMixin
from mashumaro.exceptions import MissingField, InvalidFieldValue
import yaml

from .exceptions import InputException

__all__ = [
    "CONFIG_FILE",
    "BumpConfig",
    "load_config",
]

_LOGGER = logging.getLogger(__name__)

CONFIG_FILE = "image-bump.yaml"


@dataclass
class BumpConfig(DataClassDictMixin):
    """Per-directory image selection."""

    images: list[str] = field(default_factory=list)
    """Image names to upgrade in a Dockerfile."""

    pin_major_minor: list[str] = field(default_factory=list)
    """Image names that only receive patch upgrades."""

    ignore: list[str] = field(default_factory=list)
    """Image names that are never upgraded."""

    def merge(
        self,
        images: list[str] | None = None,
        pin_major_minor: list[str] | None = None,
    ) -> "BumpConfig":
        """Return a config with additional images from the command line."""
        return BumpConfig(
            images=list(dict.fromkeys((images or []) + self.images)),
            pin_major_minor=list(
                dict.fromkeys((pin_major_minor or []) + self.pin_major_minor)
            ),
            ignore=list(self.ignore),
        )


async def load_config(directory: Path) -> BumpConfig:
    """Load the config file from a directory, if present."""
    path = directory / CONFIG_FILE
    try:
        async with aiofiles.open(path, encoding="utf-8") as f:
            content = await f.read()
    except FileNotFoundError:
        return BumpConfig()
    except OSError as err:
        raise InputException(f"Unable to load {path}: {err}") from err
    _LOGGER.debug("Loading config from %s", path)
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as err:
        raise InputException(f"Unable to parse {path}: {err}") from err
    if data is None:
        return BumpConfig()
    if not isinstance(data, dict):
        raise InputException(f"Expected a mapping in {path}")
    try:
        return BumpConfig.from_dict(data)
    except (MissingField, InvalidFieldValue, TypeError, ValueError) as err:
        raise InputException(f"Invalid config {path}: {err}") from err
