"""Tests for resolving a single image reference."""

import pytest

from image_bump.exceptions import (
    ImageNotFoundException,
    InputException,
    NoCandidateException,
    RegistryException,
    VersionFormatException,
)
from image_bump.resolver import update_image, update_image_pinned, verify_image

from .fakes import FakeTagLister


async def test_update_image(tag_lister: FakeTagLister) -> None:
    """Test upgrading to the newest tag of the same format."""
    assert await update_image("alpine:3.19.0", tag_lister) == "alpine:3.20.3"
    assert (
        await update_image("ghcr.io/openfaas/gateway:0.26.0", tag_lister)
        == "ghcr.io/openfaas/gateway:0.27.1"
    )
    assert tag_lister.calls == ["alpine", "ghcr.io/openfaas/gateway"]


async def test_update_image_registry_port(tag_lister: FakeTagLister) -> None:
    """Test an image on a registry with a port and a suffixed tag."""
    assert (
        await update_image("docker:5000/tools/rootless:1.0.0-rootless", tag_lister)
        == "docker:5000/tools/rootless:1.0.1-rootless"
    )


@pytest.mark.parametrize(
    "ref",
    [
        "alpine:3.20.3",
        "alpine:latest",
        "alpine:3.18",
        "golang:1.24",
    ],
)
async def test_update_image_unchanged(tag_lister: FakeTagLister, ref: str) -> None:
    """Test images without a newer tag of the same format."""
    assert await update_image(ref, tag_lister) is None


async def test_update_image_no_matching_format(tag_lister: FakeTagLister) -> None:
    """Test no candidate of the current format is not an error."""
    assert await update_image("ghcr.io/openfaas/of-watchdog:0.11", tag_lister) is None


async def test_update_image_lookup_failure(tag_lister: FakeTagLister) -> None:
    """Test a registry failure is raised."""
    with pytest.raises(RegistryException, match="unable to list tags for nginx"):
        await update_image("nginx:1.25.0", tag_lister)


async def test_update_image_without_tag(tag_lister: FakeTagLister) -> None:
    """Test a reference without a tag."""
    with pytest.raises(InputException):
        await update_image("alpine", tag_lister)
    assert not tag_lister.calls


async def test_update_image_pinned(tag_lister: FakeTagLister) -> None:
    """Test a pinned image only receives patch upgrades."""
    assert await update_image_pinned("golang:1.24", tag_lister) == "golang:1.24.4"
    assert await update_image_pinned("golang:1.24.4", tag_lister) is None


async def test_update_image_pinned_invalid_tag(tag_lister: FakeTagLister) -> None:
    """Test the tag is validated before contacting the registry."""
    with pytest.raises(VersionFormatException):
        await update_image_pinned("golang:latest", tag_lister)
    assert not tag_lister.calls


async def test_update_image_pinned_no_candidates(tag_lister: FakeTagLister) -> None:
    """Test the pinned range has no tags."""
    with pytest.raises(NoCandidateException, match="within 1.22.x"):
        await update_image_pinned("golang:1.22.1", tag_lister)


async def test_update_image_zero_padded() -> None:
    """Test an image with zero padded version tags."""
    lister = FakeTagLister({"ubuntu": ["20.04", "22.04", "22.10", "24.04", "latest"]})
    assert await update_image("ubuntu:22.04", lister) == "ubuntu:24.04"
    assert await update_image("ubuntu:24.04", lister) is None


async def test_verify_image(tag_lister: FakeTagLister) -> None:
    """Test an image whose tag is published."""
    await verify_image("ghcr.io/openfaas/gateway:0.26.0", tag_lister)
    await verify_image("alpine:latest", tag_lister)


async def test_verify_image_missing_tag(tag_lister: FakeTagLister) -> None:
    """Test an image whose tag is not published."""
    with pytest.raises(
        ImageNotFoundException,
        match="tag 0.99.0 not found for ghcr.io/openfaas/gateway",
    ):
        await verify_image("ghcr.io/openfaas/gateway:0.99.0", tag_lister)


async def test_verify_image_unknown_repository(tag_lister: FakeTagLister) -> None:
    """Test an image that is not on its registry."""
    with pytest.raises(RegistryException, match="unable to list tags for nginx"):
        await verify_image("nginx:1.25.0", tag_lister)
