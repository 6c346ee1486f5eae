"""Derived repository metrics: bus factor, commit frequency, issue age."""

import math
from datetime import datetime, timezone
from typing import Iterable


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def bus_factor(commit_counts: Iterable[int]) -> int | None:
    """Smallest number of top contributors holding half of all commits.

    Contributors are ranked by commit count, highest first, and their counts
    accumulated. The result is one more than the number of running sums that
    stay strictly below ``total // 2``.

    Args:
        commit_counts: Commit total per contributor, in any order.

    Returns:
        The bus factor (at least 1), or None when there are no contributors.

    >>> bus_factor([8, 5, 7])
    2
    """
    counts = sorted(commit_counts, reverse=True)
    if not counts:
        return None

    half = sum(counts) // 2
    running = 0
    below_half = 0
    for count in counts:
        running += count
        if running >= half:
            break
        below_half += 1
    return below_half + 1


def weekly_commit_frequency(
    total_commits: int,
    created_at: datetime,
    now: datetime | None = None,
) -> float:
    """Average commits per week since the repository was created.

    Repositories younger than one full week count all commits as a single week.

    Args:
        total_commits: Sum of commits across all contributors.
        created_at: Repository creation time (timezone-aware).
        now: Reference time, defaults to the current UTC time.

    Returns:
        Commits per week.
    """
    now = now or _utcnow()
    age_days = (now - created_at).days
    weeks = age_days // 7
    if weeks <= 0:
        return float(total_commits)
    return total_commits / weeks


def average_issue_age_days(
    created_dates: Iterable[datetime],
    now: datetime | None = None,
) -> int:
    """Mean age of open issues in whole days, rounded half up.

    Each issue's age is truncated to whole days before averaging. No open
    issues gives 0.
    """
    now = now or _utcnow()
    ages = [(now - created).days for created in created_dates]
    if not ages:
        return 0
    return math.floor(sum(ages) / len(ages) + 0.5)
