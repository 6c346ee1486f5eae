"""deps.dev API fetcher for package and project health data.

deps.dev (Open Source Insights) is Google's open source package analysis service.
It provides:
- The default (latest) version of a package
- Dependent counts per package version
- The source repository a package version was built from
- Project metadata (stars, forks, open issues) and OpenSSF Scorecard results

API docs: https://docs.deps.dev/api/v3/
No authentication required.
"""

from __future__ import annotations

import logging
import urllib.parse
from datetime import datetime
from typing import Any

import httpx

from pkghealth.analyzers.base import ApiFetcher
from pkghealth.config import DEFAULT_DEPS_DEV_SYSTEMS
from pkghealth.models.schemas import ScorecardCheck

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class DepsDevFetcher(ApiFetcher):
    """Fetches package and project intelligence from the deps.dev API."""

    name = "deps.dev"
    BASE_URL = "https://api.deps.dev"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        systems: dict[str, str] | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the fetcher.

        Args:
            client: Optional httpx client. If not provided, creates one per request.
            base_url: API root, without the version segment.
            systems: Package URL type to deps.dev system name.
            timeout: Timeout in seconds for per-request clients.
        """
        super().__init__(client=client, timeout=timeout)
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.systems = dict(systems) if systems is not None else dict(DEFAULT_DEPS_DEV_SYSTEMS)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def system_for(self, purl_type: str) -> str | None:
        """deps.dev system name for a package URL type, if supported."""
        return self.systems.get(purl_type.lower())

    def _encode(self, value: str) -> str:
        """URL-encode a path segment (package names may contain @, / and :)."""
        return urllib.parse.quote(value, safe="")

    def _package_url(self, system: str, name: str, api: str = "v3") -> str:
        return f"{self.base_url}/{api}/systems/{self._encode(system)}/packages/{self._encode(name)}"

    async def fetch_latest_version(self, system: str, name: str) -> str | None:
        """Fetch the version deps.dev marks as the package default.

        Args:
            system: deps.dev system name (NPM, PYPI, ...).
            name: Package name including namespace.

        Returns:
            Version string, or None if unknown.
        """
        return await self._fetch_json(self._package_url(system, name), parse_latest_version)

    async def fetch_dependents(self, system: str, name: str, version: str) -> int | None:
        """Fetch how many packages depend on a given version."""
        url = f"{self._package_url(system, name, api='v3alpha')}/versions/{self._encode(version)}:dependents"
        return await self._fetch_json(url, parse_dependent_count)

    async def fetch_source_repo_project_key(self, system: str, name: str, version: str) -> str | None:
        """Fetch the project key of a version's SOURCE_REPO related project.

        Returns:
            A key like ``github.com/owner/repo``, or None if deps.dev tracks none.
        """
        url = f"{self._package_url(system, name)}/versions/{self._encode(version)}"
        return await self._fetch_json(url, parse_source_repo_project_key)

    async def fetch_project(self, project_key: str) -> dict[str, Any] | None:
        """Fetch stars, forks, open issues and the Scorecard for a project.

        Args:
            project_key: Repository key, e.g. ``github.com/lodash/lodash``.

        Returns:
            Health fields keyed by HealthRecord field name, or None on failure.
        """
        url = f"{self.base_url}/v3/projects/{self._encode(project_key)}"
        return await self._fetch_json(url, parse_project)


def parse_latest_version(data: dict) -> str | None:
    for version in data.get("versions", []):
        if version.get("isDefault"):
            return version["versionKey"]["version"]
    return None


def parse_dependent_count(data: dict) -> int | None:
    count = data.get("dependentCount")
    return int(count) if count is not None else None


def parse_source_repo_project_key(data: dict) -> str | None:
    for project in data.get("relatedProjects", []):
        if project.get("relationType") == "SOURCE_REPO":
            key = (project.get("projectKey") or {}).get("id")
            if key:
                return key
    return None


def parse_scorecard_check(check: dict) -> ScorecardCheck:
    documentation = check.get("documentation") or {}
    score = check.get("score")
    return ScorecardCheck(
        name=check["name"],
        score=float(score) if score is not None else None,
        description=documentation.get("shortDescription"),
        documentation_url=documentation.get("url"),
        reason=check.get("reason"),
        details=[str(detail) for detail in check.get("details") or []],
    )


def parse_project(data: dict) -> dict[str, Any]:
    """Map a deps.dev project response onto HealthRecord fields.

    Only fields present in the response are returned. The Scorecard block is
    optional; when present, a malformed date fails the whole parse.
    """
    fields: dict[str, Any] = {}
    for source, target in (
        ("openIssuesCount", "open_issues"),
        ("starsCount", "stars"),
        ("forksCount", "forks"),
    ):
        if data.get(source) is not None:
            fields[target] = int(data[source])

    scorecard = data.get("scorecard")
    if not scorecard:
        return fields

    reference_version = (scorecard.get("scorecard") or {}).get("version")
    if reference_version:
        fields["scorecard_reference_version"] = reference_version
    if scorecard.get("date"):
        fields["scorecard_timestamp"] = _parse_timestamp(scorecard["date"])
    if scorecard.get("overallScore") is not None:
        fields["scorecard_score"] = float(scorecard["overallScore"])
    fields["scorecard_checks"] = [parse_scorecard_check(c) for c in scorecard.get("checks", [])]
    return fields
