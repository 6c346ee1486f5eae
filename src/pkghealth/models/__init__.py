"""Data models and schemas."""

from pkghealth.models.schemas import (
    ComponentIdentity,
    ContributorStat,
    ContributorStatsResult,
    Ecosystem,
    HealthRecord,
    Platform,
    RepoRef,
    ScorecardCheck,
    StatsStatus,
    merge,
)

__all__ = [
    "ComponentIdentity",
    "ContributorStat",
    "ContributorStatsResult",
    "Ecosystem",
    "HealthRecord",
    "Platform",
    "RepoRef",
    "ScorecardCheck",
    "StatsStatus",
    "merge",
]
