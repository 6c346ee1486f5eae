"""Health aggregation pipeline for components."""

import asyncio
import logging
from typing import Awaitable, Iterable

import httpx

from pkghealth.analyzers.registry import AnalyzerRegistry, build_default_registry
from pkghealth.config import Settings
from pkghealth.models.schemas import ComponentIdentity, HealthRecord, merge

logger = logging.getLogger(__name__)


class HealthAggregator:
    """Combines every applicable provider's answer into one HealthRecord.

    Pipeline stages:
    1. Run applicable package analyzers and merge their partial records
    2. Ask every applicable source code mapper for a repository key and keep
       the first one found, in registration order
    3. Run the source code analyzers applicable to that key and merge

    Within a stage analyzers run concurrently; merging follows registration
    order so the last registered analyzer wins field conflicts.
    """

    def __init__(
        self,
        registry: AnalyzerRegistry,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the aggregator.

        Args:
            registry: Analyzers to consult.
            client: HTTP client shared by the registry's fetchers. Closed on
                exit when used as an async context manager.
        """
        self.registry = registry
        self._http_client = client

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "HealthAggregator":
        """Build an aggregator with the default registry and its own HTTP client."""
        settings = settings or Settings()
        client = httpx.AsyncClient(timeout=settings.http_timeout)
        return cls(build_default_registry(settings, client=client), client=client)

    async def __aenter__(self) -> "HealthAggregator":
        return self

    async def __aexit__(self, *args) -> None:
        """Clean up HTTP client."""
        if self._http_client:
            await self._http_client.aclose()

    async def analyze(self, identity: ComponentIdentity) -> HealthRecord:
        """Collect all available health signals for a component.

        Never raises for provider failures: the worst case is a record that
        carries only the identity.

        Args:
            identity: Component to analyze.

        Returns:
            The merged HealthRecord.
        """
        record = HealthRecord.empty(identity)

        # Stage 1: package level signals
        package_analyzers = self.registry.package_analyzers_for(identity)
        partials = await self._gather(
            [a.analyze(identity) for a in package_analyzers],
            [a.name for a in package_analyzers],
        )
        for partial in partials:
            if partial is not None:
                record = merge(record, partial)

        # Stage 2: map to a source code repository
        repo_key = await self.find_repo_key(identity)
        if repo_key is None:
            logger.info(f"Could not find source code project for {identity}")
            return record

        # Stage 3: repository level signals
        source_analyzers = self.registry.source_code_analyzers_for(repo_key)
        if not source_analyzers:
            logger.info(f"No source code analyzer applicable to {repo_key}")
        partials = await self._gather(
            [a.analyze(identity, repo_key) for a in source_analyzers],
            [a.name for a in source_analyzers],
        )
        for partial in partials:
            if partial is not None:
                record = merge(record, partial)

        logger.debug(f"{identity}: populated {', '.join(record.populated_fields()) or 'nothing'}")
        return record

    async def find_repo_key(self, identity: ComponentIdentity) -> str | None:
        """Repository key from the first mapper (in registration order) that finds one.

        Every applicable mapper is queried, even after an earlier one succeeds.
        """
        mappers = self.registry.source_code_mappers_for(identity)
        keys = await self._gather(
            [m.find_source_code_for(identity) for m in mappers],
            [m.name for m in mappers],
        )
        return next((key for key in keys if key), None)

    async def analyze_many(self, identities: Iterable[ComponentIdentity]) -> list[HealthRecord]:
        """Analyze several components one after another, preserving input order."""
        return [await self.analyze(identity) for identity in identities]

    async def _gather(self, calls: list[Awaitable], names: list[str]) -> list:
        """Await calls concurrently; a call that raises yields None."""
        results = await asyncio.gather(*calls, return_exceptions=True)
        outcome = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                logger.error(f"Analyzer {name} failed", exc_info=result)
                outcome.append(None)
            else:
                outcome.append(result)
        return outcome
