"""Clients for looking up versions on remote registries.

The resolution engine only depends on the `TagLister` and `ReleaseResolver`
interfaces. The implementations here speak the Docker Registry HTTP API V2 and
resolve the latest GitHub release through the redirect issued by github.com.
"""

from abc import ABC, abstractmethod
import asyncio
from http import HTTPStatus
import logging
import re

import aiohttp

from .exceptions import RegistryException, ReleaseLookupException

__all__ = [
    "TagLister",
    "RegistryTagLister",
    "ReleaseResolver",
    "GitHubReleaseResolver",
]

_LOGGER = logging.getLogger(__name__)

DOCKER_HUB_REGISTRY = "registry-1.docker.io"
DOCKER_HUB_ALIASES = {"docker.io", "index.docker.io", DOCKER_HUB_REGISTRY}
DOCKER_HUB_NAMESPACE = "library"
GITHUB_URL = "https://github.com"
GITHUB_ACCEPT = "application/vnd.github.v3+json"

# Parses the parameters of a `WWW-Authenticate: Bearer realm="..",service=".."` header
_CHALLENGE_PARAM = re.compile(r'(\w+)="([^"]*)"')


class TagLister(ABC):
    """Lists the tags published for a container image."""

    @abstractmethod
    async def list_tags(self, image_name: str) -> list[str]:
        """Return every tag known for the image, e.g. `ghcr.io/org/app`."""


class ReleaseResolver(ABC):
    """Resolves the latest release of a source repository."""

    @abstractmethod
    async def latest_release(self, owner: str, repo: str) -> str:
        """Return the tag of the latest release, e.g. `v4.1.1`."""


def split_registry(image_name: str) -> tuple[str, str]:
    """Split an image name into the registry host and repository path."""
    first, sep, rest = image_name.partition("/")
    if sep and ("." in first or ":" in first or first == "localhost"):
        registry, repository = first, rest
    else:
        registry, repository = DOCKER_HUB_REGISTRY, image_name
    if registry in DOCKER_HUB_ALIASES:
        registry = DOCKER_HUB_REGISTRY
        if "/" not in repository:
            repository = f"{DOCKER_HUB_NAMESPACE}/{repository}"
    return registry, repository


class RegistryTagLister(TagLister):
    """Lists tags with the Docker Registry HTTP API V2.

    Registries that answer with a bearer challenge are sent an anonymous token
    request, which is enough for public images on Docker Hub, ghcr.io and quay.io.
    """

    def __init__(self, session: aiohttp.ClientSession, scheme: str = "https") -> None:
        """Initialize RegistryTagLister."""
        self._session = session
        self._scheme = scheme

    async def _token(self, challenge: str) -> str:
        """Request an anonymous pull token for a `WWW-Authenticate` challenge."""
        if not challenge.lower().startswith("bearer "):
            raise RegistryException(f"Unsupported registry challenge: {challenge}")
        params = dict(_CHALLENGE_PARAM.findall(challenge))
        if not (realm := params.pop("realm", None)):
            raise RegistryException(f"Registry challenge has no realm: {challenge}")
        async with self._session.get(realm, params=params) as resp:
            resp.raise_for_status()
            data = await resp.json(content_type=None)
        if not isinstance(data, dict):
            raise RegistryException(f"Unexpected token response from {realm}: {data!r}")
        if not (token := data.get("token") or data.get("access_token")):
            raise RegistryException(f"No token returned by {realm}")
        return str(token)

    async def list_tags(self, image_name: str) -> list[str]:
        """Return every tag known for the image, following pagination."""
        registry, repository = split_registry(image_name)
        url: str | None = f"{self._scheme}://{registry}/v2/{repository}/tags/list"
        headers: dict[str, str] = {}
        tags: list[str] = []
        try:
            while url:
                async with self._session.get(url, headers=headers) as resp:
                    if (
                        resp.status == HTTPStatus.UNAUTHORIZED
                        and "Authorization" not in headers
                    ):
                        token = await self._token(
                            resp.headers.get("WWW-Authenticate", "")
                        )
                        headers["Authorization"] = f"Bearer {token}"
                        continue
                    resp.raise_for_status()
                    data = await resp.json(content_type=None)
                    page = (data.get("tags") or []) if isinstance(data, dict) else None
                    if not isinstance(page, list):
                        raise RegistryException(
                            f"unable to list tags for {image_name}: "
                            f"unexpected response {data!r}"
                        )
                    tags.extend(page)
                    next_link = resp.links.get("next")
                    url = str(next_link["url"]) if next_link else None
        except (asyncio.TimeoutError, aiohttp.ClientError, ValueError) as err:
            raise RegistryException(
                f"unable to list tags for {image_name}: {err}"
            ) from err
        _LOGGER.debug("Found %d tags for %s", len(tags), image_name)
        return tags


class GitHubReleaseResolver(ReleaseResolver):
    """Resolves the latest release from the github.com release redirect.

    The redirect is not followed; the release tag is read from the `Location`
    header of the `302 Found` response.
    """

    def __init__(
        self, session: aiohttp.ClientSession, base_url: str = GITHUB_URL
    ) -> None:
        """Initialize GitHubReleaseResolver."""
        self._session = session
        self._base_url = base_url.rstrip("/")

    async def latest_release(self, owner: str, repo: str) -> str:
        """Return the tag of the latest release of owner/repo."""
        url = f"{self._base_url}/{owner}/{repo}/releases/latest"
        try:
            async with self._session.get(
                url, headers={"Accept": GITHUB_ACCEPT}, allow_redirects=False
            ) as resp:
                body = await resp.text()
                status = resp.status
                reason = resp.reason
                location = resp.headers.get("Location", "")
        except (asyncio.TimeoutError, aiohttp.ClientError) as err:
            raise ReleaseLookupException(
                f"failed to get latest version for {owner}/{repo}: {err}"
            ) from err

        if status != HTTPStatus.FOUND:
            raise ReleaseLookupException(
                f"failed to get latest version for {owner}/{repo}: "
                f"{status} {reason}, body: {body}"
            )
        if not location:
            raise ReleaseLookupException(f"no location header found for {owner}/{repo}")

        parts = location.split("/")
        if len(parts) < 7:
            raise ReleaseLookupException(f"invalid location header: {location}")
        return parts[-1]
