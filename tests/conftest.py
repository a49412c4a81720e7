"""Fixtures for image-bump tests."""

import pytest

from .fakes import FakeReleaseResolver, FakeTagLister


@pytest.fixture(name="tag_lister")
def tag_lister_fixture() -> FakeTagLister:
    """Fixture with tags for a few well known images."""
    return FakeTagLister(
        {
            "alpine": ["3.18", "3.19.0", "3.19.1", "3.20.2", "3.20.3", "latest", "edge"],
            "golang": ["1.24", "1.24.0", "1.24.4", "1.25.0", "1.25.1-alpine", "1.24.4-alpine"],
            "ghcr.io/openfaas/gateway": ["0.26.0", "0.27.0", "0.27.1", "0.28.0-rc1"],
            "ghcr.io/openfaas/of-watchdog": ["0.10.0", "0.11.3", "0.11.5"],
            "docker:5000/tools/rootless": ["1.0.0-rootless", "1.0.1-rootless", "1.1.0"],
        }
    )


@pytest.fixture(name="release_resolver")
def release_resolver_fixture() -> FakeReleaseResolver:
    """Fixture with the latest release of a few well known actions."""
    return FakeReleaseResolver(
        {
            "actions/checkout": "v4.1.1",
            "actions/setup-go": "v5.0.0",
            "docker/login-action": "v3.0.0",
            "github/codeql-action": "v3.24.0",
        }
    )
