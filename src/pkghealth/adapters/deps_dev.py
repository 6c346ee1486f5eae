"""deps.dev backed analyzers: dependents, source repository lookup, Scorecard."""

import logging

from pkghealth.adapters.base import PackageAnalyzer, SourceCodeAnalyzer, SourceCodeMapper
from pkghealth.analyzers.deps_dev import DepsDevFetcher
from pkghealth.models.schemas import ComponentIdentity, HealthRecord

logger = logging.getLogger(__name__)

# Hosts deps.dev tracks projects for
SUPPORTED_FORGES = ("github", "gitlab", "bitbucket")


class DepsDevPackageAnalyzer(PackageAnalyzer):
    """Number of dependent packages, as counted by deps.dev."""

    name = "deps.dev package"

    def __init__(self, fetcher: DepsDevFetcher) -> None:
        self.fetcher = fetcher

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return self.fetcher.system_for(identity.type) is not None

    async def analyze(self, identity: ComponentIdentity) -> HealthRecord:
        """Fetch the dependents count for the identity's version.

        Falls back to the latest version when the identity carries no
        version or deps.dev has no count for it. If the latest version cannot
        be determined nothing is fetched at all.
        """
        record = HealthRecord.empty(identity)
        system = self.fetcher.system_for(identity.type)
        if system is None:
            return record
        name = identity.coordinates

        latest = await self.fetcher.fetch_latest_version(system, name)
        if latest is None:
            logger.warning(f"Could not determine latest version on deps.dev for {identity}")
            return record

        dependents = None
        if identity.version:
            dependents = await self.fetcher.fetch_dependents(system, name, identity.version)
        if dependents is None and identity.version != latest:
            dependents = await self.fetcher.fetch_dependents(system, name, latest)
        if dependents is None:
            logger.warning(f"Could not determine dependents on deps.dev for {identity}")
            return record

        return record.model_copy(update={"dependents": dependents})


class DepsDevSourceCodeMapper(SourceCodeMapper):
    """Source repository of the latest version, as recorded by deps.dev."""

    name = "deps.dev mapper"

    def __init__(self, fetcher: DepsDevFetcher) -> None:
        self.fetcher = fetcher

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return self.fetcher.system_for(identity.type) is not None

    async def find_source_code_for(self, identity: ComponentIdentity) -> str | None:
        system = self.fetcher.system_for(identity.type)
        if system is None:
            return None
        name = identity.coordinates

        latest = await self.fetcher.fetch_latest_version(system, name)
        if latest is None:
            logger.warning(f"Could not determine latest version on deps.dev for {identity}")
            return None

        project_key = await self.fetcher.fetch_source_repo_project_key(system, name, latest)
        if project_key is None:
            logger.info(f"Could not determine source code project for {identity}")
        return project_key


class DepsDevSourceCodeAnalyzer(SourceCodeAnalyzer):
    """Stars, forks, open issues and OpenSSF Scorecard for a project."""

    name = "deps.dev source"

    def __init__(self, fetcher: DepsDevFetcher) -> None:
        self.fetcher = fetcher

    def is_applicable(self, repo_key: str) -> bool:
        return any(forge in repo_key for forge in SUPPORTED_FORGES)

    async def analyze(self, identity: ComponentIdentity, repo_key: str) -> HealthRecord:
        record = HealthRecord.empty(identity)
        fields = await self.fetcher.fetch_project(repo_key)
        if fields is None:
            logger.info(f"Could not retrieve project data on deps.dev for {repo_key}")
            return record
        return HealthRecord(identity=identity, **fields)
