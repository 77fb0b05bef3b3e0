"""Check GitHub for a newer release of a Lacework project.

Queries ``https://api.github.com/repos/lacework/<project>/releases/latest``.
Unauthenticated GitHub calls are rate limited (about 60 per hour), so the
check runs only on ``lwcli version`` and never in the background, and
successful lookups are kept in a :mod:`diskcache` store under the cache
directory for a day. Setting ``LW_UPDATES_DISABLE`` to any value turns the
check off.
"""

from __future__ import annotations

import logging
import os
from typing import Optional

import diskcache
import httpx
from pydantic import BaseModel

from lwcli.exceptions import ConnectionError_, LwcliError
from lwcli.models import GitRelease

logger = logging.getLogger(__name__)

GITHUB_ORGANIZATION = "lacework"
GITHUB_API_URL = "https://api.github.com"
DISABLE_ENV = "LW_UPDATES_DISABLE"
USER_AGENT = "lacework-updater"
CACHE_TTL_SECONDS = 24 * 60 * 60


class VersionInfo(BaseModel):
    """Result of an update check. All fields are empty when the check is disabled."""

    project: str = ""
    version: str = ""
    latest: str = ""
    outdated: bool = False


def check(
    project: str,
    current: str,
    transport: Optional[httpx.BaseTransport] = None,
) -> VersionInfo:
    """Compare *current* with the latest release tag of *project*.

    Tags are compared as strings after dropping a leading ``v``, so
    ``v0.4.0`` and ``0.4.0`` are the same release.

    Raises:
        ConnectionError_: If GitHub cannot be reached.
        LwcliError: If GitHub answers with an error status.
    """
    if os.environ.get(DISABLE_ENV):
        logger.debug("update check disabled by %s", DISABLE_ENV)
        return VersionInfo()

    release = get_git_release(project, transport=transport)
    return VersionInfo(
        project=project,
        version=current,
        latest=release.tag_name,
        outdated=_normalize(current) != _normalize(release.tag_name),
    )


def get_git_release(
    project: str,
    version: str = "latest",
    transport: Optional[httpx.BaseTransport] = None,
) -> GitRelease:
    """Fetch release *version* (a tag, or ``latest``) of *project*.

    A lookup younger than :data:`CACHE_TTL_SECONDS` is answered from the
    release cache without contacting GitHub.
    """
    if not project:
        raise LwcliError("specify a valid project")

    if version == "latest":
        path = f"/repos/{GITHUB_ORGANIZATION}/{project}/releases/latest"
    else:
        path = f"/repos/{GITHUB_ORGANIZATION}/{project}/releases/tags/{version}"

    with _release_cache() as cache:
        cached = cache.get(path)
        if cached is not None:
            logger.debug("release cache hit for %s", path)
            return GitRelease.model_validate(cached)

        data = _fetch_release(project, path, transport)
        cache.set(path, data, expire=CACHE_TTL_SECONDS)
    return GitRelease.model_validate(data)


def _fetch_release(
    project: str, path: str, transport: Optional[httpx.BaseTransport]
) -> dict:
    # GitHub rejects requests without a User-Agent.
    headers = {"User-Agent": USER_AGENT, "Accept": "application/vnd.github+json"}
    logger.debug("GET %s%s", GITHUB_API_URL, path)
    try:
        with httpx.Client(base_url=GITHUB_API_URL, timeout=10, transport=transport) as client:
            response = client.get(path, headers=headers)
    except httpx.TransportError as exc:
        raise ConnectionError_(f"Unable to reach GitHub: {exc}") from exc

    if not response.is_success:
        raise LwcliError(
            f"unable to get release information of {project}: HTTP {response.status_code}"
        )
    return response.json()


def _release_cache() -> diskcache.Cache:
    from lwcli.config import get_cache_dir

    return diskcache.Cache(str(get_cache_dir() / "releases"))


def _normalize(tag: str) -> str:
    return tag[1:] if tag.startswith("v") else tag
