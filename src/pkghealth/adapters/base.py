"""Abstract interfaces for health analyzers, plus repository URL parsing."""

import re
from abc import ABC, abstractmethod

from pkghealth.models.schemas import ComponentIdentity, HealthRecord, Platform, RepoRef


class PackageAnalyzer(ABC):
    """Collects package-level signals (e.g. dependents) for an identity."""

    name: str = "package"

    @abstractmethod
    def is_applicable(self, identity: ComponentIdentity) -> bool:
        """Whether this analyzer can handle the identity's ecosystem."""
        ...

    @abstractmethod
    async def analyze(self, identity: ComponentIdentity) -> HealthRecord:
        """Return a partial record for the identity.

        Implementations never raise for provider failures; they log and
        return an empty record instead.
        """
        ...


class SourceCodeMapper(ABC):
    """Resolves an identity to the key of its source code repository."""

    name: str = "mapper"

    @abstractmethod
    def is_applicable(self, identity: ComponentIdentity) -> bool:
        ...

    @abstractmethod
    async def find_source_code_for(self, identity: ComponentIdentity) -> str | None:
        """Return a repository key like ``github.com/owner/repo``, or None."""
        ...


class SourceCodeAnalyzer(ABC):
    """Collects repository-level signals for a repository key."""

    name: str = "source"

    @abstractmethod
    def is_applicable(self, repo_key: str) -> bool:
        """Whether this analyzer understands the repository key."""
        ...

    @abstractmethod
    async def analyze(self, identity: ComponentIdentity, repo_key: str) -> HealthRecord:
        """Return a partial record for the repository behind ``repo_key``."""
        ...


def parse_repo_url(url: str) -> RepoRef | None:
    """Parse a repository URL into a RepoRef.

    Supports GitHub, GitLab, and Bitbucket URLs.

    Args:
        url: Repository URL to parse.

    Returns:
        RepoRef if the URL can be parsed, None otherwise.
    """
    if not url:
        return None

    url = url.strip()
    if url.startswith("git+"):
        url = url[4:]

    hosts = [
        (Platform.GITHUB, r"github\.com"),
        (Platform.GITLAB, r"gitlab\.com"),
        (Platform.BITBUCKET, r"bitbucket\.org"),
    ]
    # https://github.com/owner/repo(.git)(/tree/main/subpath)
    # git://github.com/owner/repo.git, ssh://git@github.com/owner/repo.git
    # git@github.com:owner/repo.git
    for platform, host in hosts:
        patterns = [
            rf"(?:[a-z+]+://)?(?:[^@/]+@)?(?:www\.)?{host}/([^/\s]+)/([^/\s#?]+)",
            rf"[^@/\s]+@{host}:([^/\s]+)/([^/\s#?]+)",
        ]
        for pattern in patterns:
            match = re.match(pattern, url)
            if match:
                repo = match.group(2)
                if repo.endswith(".git"):
                    repo = repo[:-4]
                return RepoRef(platform=platform, owner=match.group(1), repo=repo)

    return None


def repo_key_from_url(url: str | None) -> str | None:
    """Canonical repository key (``github.com/owner/repo``) for a URL."""
    if not url:
        return None
    ref = parse_repo_url(url)
    return ref.project_key if ref else None
