"""Ordered registry of health analyzers."""

from __future__ import annotations

from typing import Iterable

import httpx

from pkghealth.adapters.base import PackageAnalyzer, SourceCodeAnalyzer, SourceCodeMapper
from pkghealth.config import Settings
from pkghealth.models.schemas import ComponentIdentity


class AnalyzerRegistry:
    """Holds package analyzers, source code mappers and source code analyzers.

    Registration order matters: lookups preserve it, and the aggregator
    merges results in that order, so later analyzers win field conflicts.
    """

    def __init__(
        self,
        package_analyzers: Iterable[PackageAnalyzer] = (),
        source_code_mappers: Iterable[SourceCodeMapper] = (),
        source_code_analyzers: Iterable[SourceCodeAnalyzer] = (),
    ) -> None:
        self.package_analyzers: tuple[PackageAnalyzer, ...] = tuple(package_analyzers)
        self.source_code_mappers: tuple[SourceCodeMapper, ...] = tuple(source_code_mappers)
        self.source_code_analyzers: tuple[SourceCodeAnalyzer, ...] = tuple(source_code_analyzers)

    def package_analyzers_for(self, identity: ComponentIdentity) -> list[PackageAnalyzer]:
        return [a for a in self.package_analyzers if a.is_applicable(identity)]

    def source_code_mappers_for(self, identity: ComponentIdentity) -> list[SourceCodeMapper]:
        return [m for m in self.source_code_mappers if m.is_applicable(identity)]

    def source_code_analyzers_for(self, repo_key: str) -> list[SourceCodeAnalyzer]:
        return [a for a in self.source_code_analyzers if a.is_applicable(repo_key)]

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        """Whether any package analyzer or mapper handles the identity."""
        return bool(self.package_analyzers_for(identity) or self.source_code_mappers_for(identity))


def build_default_registry(
    settings: Settings | None = None,
    client: httpx.AsyncClient | None = None,
) -> AnalyzerRegistry:
    """Build the standard registry.

    Order (which is also merge precedence, last wins):
    - package analyzers: deps.dev
    - mappers: deps.dev, npm registry, PyPI
    - source code analyzers: deps.dev, then GitHub

    Args:
        settings: Runtime settings. Defaults are used if omitted.
        client: Shared HTTP client passed to every fetcher.

    Returns:
        A populated AnalyzerRegistry.
    """
    from pkghealth.adapters.deps_dev import (
        DepsDevPackageAnalyzer,
        DepsDevSourceCodeAnalyzer,
        DepsDevSourceCodeMapper,
    )
    from pkghealth.adapters.github import GitHubSourceCodeAnalyzer
    from pkghealth.adapters.npm import NpmSourceCodeMapper
    from pkghealth.adapters.pypi import PyPiSourceCodeMapper
    from pkghealth.analyzers.deps_dev import DepsDevFetcher
    from pkghealth.analyzers.github import GitHubFetcher

    settings = settings or Settings()
    timeout = settings.http_timeout

    deps_dev = DepsDevFetcher(
        client=client,
        base_url=settings.deps_dev_url,
        systems=settings.ecosystem_systems,
        timeout=timeout,
    )
    github = GitHubFetcher(
        token=settings.github_token,
        client=client,
        base_url=settings.github_api_url,
        timeout=timeout,
    )

    return AnalyzerRegistry(
        package_analyzers=[DepsDevPackageAnalyzer(deps_dev)],
        source_code_mappers=[
            DepsDevSourceCodeMapper(deps_dev),
            NpmSourceCodeMapper(client=client, timeout=timeout),
            PyPiSourceCodeMapper(client=client, timeout=timeout),
        ],
        source_code_analyzers=[
            DepsDevSourceCodeAnalyzer(deps_dev),
            GitHubSourceCodeAnalyzer(
                github,
                stats_max_attempts=settings.stats_max_attempts,
                stats_retry_interval=settings.stats_retry_interval,
            ),
        ],
    )
