"""GitHub backed source code analyzer."""

import asyncio
import logging
from typing import Awaitable, Callable

from pkghealth.adapters.base import SourceCodeAnalyzer
from pkghealth.analyzers.base import safe_fetch
from pkghealth.analyzers.github import GitHubFetcher, parse_github_timestamp
from pkghealth.analyzers.metrics import (
    average_issue_age_days,
    bus_factor,
    weekly_commit_frequency,
)
from pkghealth.models.schemas import (
    ComponentIdentity,
    ContributorStat,
    HealthRecord,
    StatsStatus,
)

logger = logging.getLogger(__name__)

GITHUB_KEY_PREFIX = "github.com"


class GitHubSourceCodeAnalyzer(SourceCodeAnalyzer):
    """Activity, hygiene and contributor metrics straight from GitHub.

    Every signal is fetched independently; a failure leaves that one field
    unset (or False for the file presence checks) and never aborts the rest.
    """

    name = "github source"

    def __init__(
        self,
        fetcher: GitHubFetcher,
        stats_max_attempts: int = 5,
        stats_retry_interval: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the analyzer.

        Args:
            fetcher: GitHub API fetcher.
            stats_max_attempts: Total contributor statistics requests before giving up.
            stats_retry_interval: Seconds to wait while GitHub computes statistics.
            sleep: Coroutine used to wait between attempts.
        """
        self.fetcher = fetcher
        self.stats_max_attempts = max(1, stats_max_attempts)
        self.stats_retry_interval = stats_retry_interval
        self._sleep = sleep

    def is_applicable(self, repo_key: str) -> bool:
        return repo_key.startswith(GITHUB_KEY_PREFIX)

    @staticmethod
    def split_key(repo_key: str) -> tuple[str, str] | None:
        """Split ``github.com/owner/repo`` into ``(owner, repo)``."""
        path = repo_key[len(GITHUB_KEY_PREFIX):].strip("/")
        parts = path.split("/")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return None
        return parts[0], parts[1]

    async def analyze(self, identity: ComponentIdentity, repo_key: str) -> HealthRecord:
        record = HealthRecord.empty(identity)
        coordinates = self.split_key(repo_key)
        if coordinates is None:
            logger.warning(f"Not a GitHub repository key: {repo_key}")
            return record
        owner, repo = coordinates
        gh = self.fetcher

        repo_info = await safe_fetch(lambda: gh.fetch_repo(owner, repo), None, f"repository {repo_key}")
        if repo_info is None:
            logger.warning(f"GitHub repository retrieval failed for {repo_key}")
            return record

        default_branch = repo_info.get("default_branch") or "main"
        head = await safe_fetch(
            lambda: gh.fetch_branch_head(owner, repo, default_branch),
            None,
            f"head of {repo_key}@{default_branch}",
        )

        (
            contributors,
            open_prs,
            last_commit_date,
            has_readme,
            has_code_of_conduct,
            has_security_policy,
            files,
            issue_dates,
        ) = await asyncio.gather(
            safe_fetch(lambda: gh.count_contributors(owner, repo), None, f"contributors of {repo_key}"),
            safe_fetch(lambda: gh.count_open_pull_requests(owner, repo), None, f"open PRs of {repo_key}"),
            self._last_commit_date(owner, repo, head),
            safe_fetch(lambda: gh.has_readme(owner, repo), False, f"README of {repo_key}"),
            safe_fetch(
                lambda: gh.has_file(owner, repo, "CODE_OF_CONDUCT.md"), False, f"code of conduct of {repo_key}"
            ),
            safe_fetch(
                lambda: gh.has_file(owner, repo, ".github/SECURITY.md"), False, f"security policy of {repo_key}"
            ),
            self._file_count(owner, repo, head),
            safe_fetch(lambda: gh.fetch_open_issue_dates(owner, repo), None, f"open issues of {repo_key}"),
        )

        updates = {
            "contributors": contributors,
            "open_prs": open_prs,
            "last_commit_date": last_commit_date,
            "has_readme": has_readme,
            "has_code_of_conduct": has_code_of_conduct,
            "has_security_policy": has_security_policy,
            "files": files,
            "is_repo_archived": repo_info.get("archived"),
            "avg_issue_age_days": average_issue_age_days(issue_dates) if issue_dates is not None else None,
        }

        stats = await self.poll_contributor_stats(owner, repo)
        if stats:
            created_at = repo_info.get("created_at")
            if created_at:
                updates["commit_frequency_weekly"] = weekly_commit_frequency(
                    sum(s.total for s in stats),
                    parse_github_timestamp(created_at),
                )
            updates["bus_factor"] = bus_factor(s.total for s in stats)
        elif stats is not None:
            logger.warning(f"No contributor stats found for {repo_key}, skipping bus factor and commit frequency")

        return record.model_copy(update={k: v for k, v in updates.items() if v is not None})

    async def _last_commit_date(self, owner: str, repo: str, head: str | None):
        if head is None:
            return None
        return await safe_fetch(
            lambda: self.fetcher.fetch_commit_date(owner, repo, head), None, f"last commit of {owner}/{repo}"
        )

    async def _file_count(self, owner: str, repo: str, head: str | None):
        if head is None:
            return None
        return await safe_fetch(
            lambda: self.fetcher.count_tree_blobs(owner, repo, head), None, f"file tree of {owner}/{repo}"
        )

    async def poll_contributor_stats(self, owner: str, repo: str) -> list[ContributorStat] | None:
        """Request contributor statistics until GitHub has them ready.

        Waits ``stats_retry_interval`` between attempts while GitHub reports
        the statistics as still being computed, for at most
        ``stats_max_attempts`` requests in total.

        Returns:
            The statistics (possibly empty), or None if they never became
            ready or the request failed.
        """
        for attempt in range(1, self.stats_max_attempts + 1):
            result = await self.fetcher.fetch_contributor_stats(owner, repo)
            if result.status == StatsStatus.READY:
                return result.stats
            if result.status == StatsStatus.ERROR:
                logger.warning(f"Contributor stats for {owner}/{repo} failed: {result.error}")
                return None
            if attempt < self.stats_max_attempts:
                logger.debug(
                    f"Contributor stats for {owner}/{repo} not ready "
                    f"(attempt {attempt}/{self.stats_max_attempts}), retrying in {self.stats_retry_interval}s"
                )
                await self._sleep(self.stats_retry_interval)

        logger.warning(
            f"Contributor stats for {owner}/{repo} still not ready after {self.stats_max_attempts} attempts"
        )
        return None
