"""PyPI source code mapper."""

import logging
import re

import httpx

from pkghealth.adapters.base import SourceCodeMapper, repo_key_from_url
from pkghealth.analyzers.base import ApiFetcher
from pkghealth.models.schemas import ComponentIdentity, Ecosystem

logger = logging.getLogger(__name__)

FORGE_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")

# Common keys for source code URLs (in priority order)
REPO_URL_KEYS = [
    "Source", "Source Code", "Repository", "GitHub",
    "Code", "Homepage", "Home", "source", "repository",
    "github", "Git", "git",
]


class PyPiSourceCodeMapper(ApiFetcher, SourceCodeMapper):
    """Resolves PyPI packages to their repository via project URLs.

    Data source: https://pypi.org/pypi/{package}/json
    """

    name = "pypi"
    PYPI_URL = "https://pypi.org/pypi"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        pypi_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        super().__init__(client=client, timeout=timeout)
        self.pypi_url = (pypi_url or self.PYPI_URL).rstrip("/")

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return identity.type == Ecosystem.PYPI.value

    async def find_source_code_for(self, identity: ComponentIdentity) -> str | None:
        url = f"{self.pypi_url}/{normalize_name(identity.name)}/json"
        data = await self._fetch_json(url)
        if not isinstance(data, dict):
            return None

        key = repo_key_from_url(extract_repo_url(data.get("info") or {}))
        if key is None:
            logger.info(f"No repository URL found in PyPI metadata for {identity}")
        return key


def normalize_name(name: str) -> str:
    """Normalize a PyPI package name.

    PyPI package names are case-insensitive and treat underscores,
    hyphens, and periods as equivalent.
    """
    return re.sub(r"[-_.]+", "-", name).lower()


def _is_forge_url(url: str | None) -> bool:
    return bool(url) and any(host in url for host in FORGE_HOSTS)


def extract_repo_url(info: dict) -> str | None:
    """Extract repository URL from PyPI info.

    Checks project_urls for common keys like Source, Repository, GitHub,
    then the home page, then any other project URL on a known forge.
    """
    project_urls = info.get("project_urls") or {}

    for key in REPO_URL_KEYS:
        if _is_forge_url(project_urls.get(key)):
            return project_urls[key]

    homepage = info.get("home_page")
    if _is_forge_url(homepage):
        return homepage

    for url in project_urls.values():
        if _is_forge_url(url):
            return url

    return None
