"""Health analyzers backed by specific providers."""

from pkghealth.adapters.base import PackageAnalyzer, SourceCodeAnalyzer, SourceCodeMapper
from pkghealth.adapters.deps_dev import (
    DepsDevPackageAnalyzer,
    DepsDevSourceCodeAnalyzer,
    DepsDevSourceCodeMapper,
)
from pkghealth.adapters.github import GitHubSourceCodeAnalyzer
from pkghealth.adapters.npm import NpmSourceCodeMapper
from pkghealth.adapters.pypi import PyPiSourceCodeMapper

__all__ = [
    "DepsDevPackageAnalyzer",
    "DepsDevSourceCodeAnalyzer",
    "DepsDevSourceCodeMapper",
    "GitHubSourceCodeAnalyzer",
    "NpmSourceCodeMapper",
    "PackageAnalyzer",
    "PyPiSourceCodeMapper",
    "SourceCodeAnalyzer",
    "SourceCodeMapper",
]
