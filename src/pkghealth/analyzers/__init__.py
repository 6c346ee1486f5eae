"""Fetchers, metrics and the aggregation pipeline."""

from pkghealth.analyzers.deps_dev import DepsDevFetcher
from pkghealth.analyzers.github import GitHubFetcher
from pkghealth.analyzers.pipeline import HealthAggregator
from pkghealth.analyzers.registry import AnalyzerRegistry, build_default_registry

__all__ = [
    "AnalyzerRegistry",
    "DepsDevFetcher",
    "GitHubFetcher",
    "HealthAggregator",
    "build_default_registry",
]
