"""NPM registry source code mapper."""

import logging

import httpx

from pkghealth.adapters.base import SourceCodeMapper, repo_key_from_url
from pkghealth.analyzers.base import ApiFetcher
from pkghealth.models.schemas import ComponentIdentity, Ecosystem

logger = logging.getLogger(__name__)


class NpmSourceCodeMapper(ApiFetcher, SourceCodeMapper):
    """Resolves npm packages to their repository via registry metadata.

    Data source: https://registry.npmjs.org/{package}
    """

    name = "npm registry"
    REGISTRY_URL = "https://registry.npmjs.org"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        registry_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the mapper.

        Args:
            client: Optional httpx client for making requests.
            registry_url: Registry root, for mirrors or tests.
            timeout: Timeout in seconds for per-request clients.
        """
        super().__init__(client=client, timeout=timeout)
        self.registry_url = (registry_url or self.REGISTRY_URL).rstrip("/")

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return identity.type == Ecosystem.NPM.value

    async def find_source_code_for(self, identity: ComponentIdentity) -> str | None:
        # URL-encode scoped package names
        package = identity.coordinates
        if identity.namespace and not identity.namespace.startswith("@"):
            package = f"@{package}"
        url = f"{self.registry_url}/{package.replace('/', '%2F')}"

        data = await self._fetch_json(url)
        if not isinstance(data, dict):
            return None

        version_data = {}
        versions = data.get("versions") or {}
        if identity.version and identity.version in versions:
            version_data = versions[identity.version]
        repository = version_data.get("repository") or data.get("repository")

        key = repo_key_from_url(extract_repo_url(repository))
        if key is None:
            logger.info(f"No repository field found in npm metadata for {identity}")
        return key


def extract_repo_url(repository: dict | str | None) -> str | None:
    """Extract repository URL from npm repository field.

    Handles various formats:
    - {"type": "git", "url": "git+https://github.com/owner/repo.git"}
    - "github:owner/repo", "gitlab:owner/repo", "bitbucket:owner/repo"
    - "owner/repo" (GitHub shorthand)
    - "https://github.com/owner/repo"
    """
    if not repository:
        return None

    if isinstance(repository, str):
        url = repository
    elif isinstance(repository, dict):
        url = repository.get("url", "")
    else:
        return None

    if not url:
        return None

    shorthands = {
        "github:": "https://github.com/",
        "gitlab:": "https://gitlab.com/",
        "bitbucket:": "https://bitbucket.org/",
    }
    for prefix, base in shorthands.items():
        if url.startswith(prefix):
            return base + url[len(prefix):]

    if "://" not in url and "@" not in url and url.count("/") == 1:
        return f"https://github.com/{url}"

    return url
