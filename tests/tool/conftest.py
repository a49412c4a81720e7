"""Fixtures for the command line tool tests."""

import pytest

from ..fakes import FakeReleaseResolver, FakeTagLister


@pytest.fixture(autouse=True)
def fake_registry(
    monkeypatch: pytest.MonkeyPatch,
    tag_lister: FakeTagLister,
    release_resolver: FakeReleaseResolver,
) -> None:
    """Replace the registry clients used by the commands with fakes."""
    monkeypatch.setattr(
        "image_bump.tool.chart.RegistryTagLister", lambda session: tag_lister
    )
    monkeypatch.setattr(
        "image_bump.tool.docker.RegistryTagLister", lambda session: tag_lister
    )
    monkeypatch.setattr(
        "image_bump.tool.gha.GitHubReleaseResolver", lambda session: release_resolver
    )
