"""Pydantic models for component health data."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Platform(str, Enum):
    """Source code hosting platforms."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"


class Ecosystem(str, Enum):
    """Package URL types with known health providers."""

    NPM = "npm"
    GOLANG = "golang"
    MAVEN = "maven"
    PYPI = "pypi"
    NUGET = "nuget"
    CARGO = "cargo"
    GEM = "gem"


class RepoRef(BaseModel):
    """Reference to a source code repository."""

    platform: Platform
    owner: str
    repo: str

    @property
    def project_key(self) -> str:
        """Canonical repository key, e.g. ``github.com/owner/repo``."""
        hosts = {
            Platform.GITHUB: "github.com",
            Platform.GITLAB: "gitlab.com",
            Platform.BITBUCKET: "bitbucket.org",
        }
        return f"{hosts[self.platform]}/{self.owner}/{self.repo}"


class ComponentIdentity(BaseModel):
    """Identity of a software component: ecosystem, namespace, name, version.

    ``type`` is a package URL type string. Types outside :class:`Ecosystem`
    are accepted; they just match no analyzer.
    """

    model_config = ConfigDict(frozen=True)

    type: str
    name: str
    namespace: str | None = None
    version: str | None = None

    @property
    def coordinates(self) -> str:
        """Package name as registries expect it, namespace included.

        Maven joins group and artifact with ``:``, every other type uses ``/``
        (``@scope/pkg`` for npm, ``github.com/org/mod`` for Go).
        """
        if not self.namespace:
            return self.name
        separator = ":" if self.type == Ecosystem.MAVEN.value else "/"
        return f"{self.namespace}{separator}{self.name}"

    @property
    def purl(self) -> str:
        """Package URL rendering, used in log messages."""
        path = f"{self.namespace}/{self.name}" if self.namespace else self.name
        suffix = f"@{self.version}" if self.version else ""
        return f"pkg:{self.type}/{path}{suffix}"

    def __str__(self) -> str:
        return self.purl


class ScorecardCheck(BaseModel):
    """A single OpenSSF Scorecard check result."""

    model_config = ConfigDict(frozen=True)

    name: str
    description: str | None = None
    score: float | None = None
    reason: str | None = None
    details: list[str] = Field(default_factory=list)
    documentation_url: str | None = None


class ContributorStat(BaseModel):
    """Commit total for one contributor, from GitHub's statistics endpoint."""

    author: str | None = None
    total: int = 0


class StatsStatus(str, Enum):
    """Readiness of GitHub's lazily computed repository statistics."""

    READY = "ready"
    NOT_READY = "not_ready"
    ERROR = "error"


class ContributorStatsResult(BaseModel):
    """Outcome of one contributor statistics request."""

    status: StatsStatus
    stats: list[ContributorStat] = Field(default_factory=list)
    error: str | None = None

    @classmethod
    def ready(cls, stats: list[ContributorStat]) -> "ContributorStatsResult":
        return cls(status=StatsStatus.READY, stats=stats)

    @classmethod
    def not_ready(cls) -> "ContributorStatsResult":
        return cls(status=StatsStatus.NOT_READY)

    @classmethod
    def failed(cls, error: str) -> "ContributorStatsResult":
        return cls(status=StatsStatus.ERROR, error=error)


class HealthRecord(BaseModel):
    """Health signals for one component.

    Every signal is optional: ``None`` means no provider supplied it. Records
    are immutable; combine them with :func:`merge`.
    """

    model_config = ConfigDict(frozen=True)

    identity: ComponentIdentity

    # Popularity
    stars: int | None = None
    forks: int | None = None
    dependents: int | None = None

    # Activity
    contributors: int | None = None
    commit_frequency_weekly: float | None = None
    open_issues: int | None = None
    open_prs: int | None = None
    last_commit_date: datetime | None = None
    bus_factor: int | None = None
    avg_issue_age_days: int | None = None

    # Repository hygiene
    has_readme: bool | None = None
    has_code_of_conduct: bool | None = None
    has_security_policy: bool | None = None
    files: int | None = None
    is_repo_archived: bool | None = None

    # OpenSSF Scorecard
    scorecard_checks: list[ScorecardCheck] | None = None
    scorecard_score: float | None = None
    scorecard_reference_version: str | None = None
    scorecard_timestamp: datetime | None = None

    @classmethod
    def empty(cls, identity: ComponentIdentity) -> "HealthRecord":
        """Record carrying only the identity."""
        return cls(identity=identity)

    @classmethod
    def signal_fields(cls) -> list[str]:
        """Names of all health signal fields (everything except identity)."""
        return [name for name in cls.model_fields if name != "identity"]

    def populated_fields(self) -> list[str]:
        """Names of signal fields that carry a value."""
        return [name for name in self.signal_fields() if getattr(self, name) is not None]

    def is_empty(self) -> bool:
        return not self.populated_fields()

    def merged(self, other: "HealthRecord") -> "HealthRecord":
        """Shorthand for ``merge(self, other)``."""
        return merge(self, other)


def merge(base: HealthRecord, incoming: HealthRecord) -> HealthRecord:
    """Combine two records, field by field.

    Every field set in ``incoming`` overwrites the same field of ``base``;
    fields ``incoming`` leaves unset keep their ``base`` value. The result
    always carries ``base``'s identity. Scorecard checks are replaced as a
    whole list, never combined element-wise.

    Args:
        base: Accumulated record.
        incoming: Partial record from a provider, applied last.

    Returns:
        A new HealthRecord; neither input is modified.
    """
    updates = {}
    for name in HealthRecord.signal_fields():
        value = getattr(incoming, name)
        if value is None:
            continue
        updates[name] = list(value) if isinstance(value, list) else value
    return base.model_copy(update=updates)
