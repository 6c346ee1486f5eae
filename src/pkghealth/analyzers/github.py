"""GitHub REST API fetcher for repository health data."""

import logging
import re
from datetime import datetime

import httpx

from pkghealth.analyzers.base import ApiFetcher
from pkghealth.models.schemas import ContributorStat, ContributorStatsResult

logger = logging.getLogger(__name__)

_LAST_PAGE_RE = re.compile(r'[?&]page=(\d+)[^>]*>;\s*rel="last"')


def parse_github_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class GitHubFetcher(ApiFetcher):
    """Fetches repository data from the GitHub REST API.

    A personal access token is optional but raises the rate limit from 60 to
    5000 requests per hour.

    Apart from :meth:`fetch_contributor_stats`, methods return None (or False)
    when GitHub answers 404 and raise ``httpx.HTTPError`` for any other
    failure, leaving the fallback decision to the caller.
    """

    name = "github"
    BASE_URL = "https://api.github.com"

    def __init__(
        self,
        token: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialize the fetcher.

        Args:
            token: GitHub personal access token. Anonymous access if omitted.
            client: Optional httpx client. If not provided, a new client is created.
            base_url: API root, for GitHub Enterprise or tests.
            timeout: Timeout in seconds for per-request clients.
        """
        super().__init__(client=client, timeout=timeout)
        self._token = token
        self.base_url = (base_url or self.BASE_URL).rstrip("/")

    def _headers(self) -> dict[str, str]:
        """Get headers for GitHub API requests."""
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _request(self, path: str, params: dict | None = None) -> httpx.Response:
        client = await self._get_client()
        try:
            return await client.get(f"{self.base_url}{path}", params=params, headers=self._headers())
        finally:
            if self._client is None:
                await client.aclose()

    async def _fetch(self, path: str, params: dict | None = None) -> dict | list | None:
        """Fetch from GitHub API.

        Returns None if 404, raises on other errors.
        """
        response = await self._request(path, params)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()

    async def _fetch_all_pages(
        self,
        path: str,
        params: dict | None = None,
        max_pages: int | None = None,
    ) -> list:
        """Fetch all pages from a paginated endpoint.

        Reads until a short or empty page unless ``max_pages`` caps it.
        """
        params = dict(params or {})
        params.setdefault("per_page", 100)

        results = []
        page = 1
        while max_pages is None or page <= max_pages:
            params["page"] = page
            data = await self._fetch(path, params)
            if not data:
                break

            results.extend(data)

            # Check if there are more pages
            if len(data) < params["per_page"]:
                break
            page += 1

        return results

    async def _count(self, path: str, params: dict | None = None) -> int | None:
        """Count the items of a paginated endpoint without listing them.

        Requests one item per page and reads the total from the ``last`` link
        of the Link header.
        """
        params = dict(params or {})
        params["per_page"] = 1
        response = await self._request(path, params)
        if response.status_code == 404:
            return None
        response.raise_for_status()
        if response.status_code == 204:
            # Empty repository
            return 0

        match = _LAST_PAGE_RE.search(response.headers.get("Link", ""))
        if match:
            return int(match.group(1))
        # Single page: the body holds every item
        return len(response.json())

    async def _exists(self, path: str) -> bool:
        response = await self._request(path)
        if response.status_code == 404:
            return False
        response.raise_for_status()
        return True

    async def fetch_repo(self, owner: str, repo: str) -> dict | None:
        """Fetch basic repository information (default branch, archived, created_at)."""
        data = await self._fetch(f"/repos/{owner}/{repo}")
        return data if isinstance(data, dict) else None

    async def count_contributors(self, owner: str, repo: str) -> int | None:
        return await self._count(f"/repos/{owner}/{repo}/contributors")

    async def count_open_pull_requests(self, owner: str, repo: str) -> int | None:
        return await self._count(f"/repos/{owner}/{repo}/pulls", {"state": "open"})

    async def fetch_branch_head(self, owner: str, repo: str, branch: str) -> str | None:
        """SHA of the commit a branch points to."""
        data = await self._fetch(f"/repos/{owner}/{repo}/branches/{branch}")
        if not data:
            return None
        return data["commit"]["sha"]

    async def fetch_commit_date(self, owner: str, repo: str, sha: str) -> datetime | None:
        """Committer date of a commit."""
        data = await self._fetch(f"/repos/{owner}/{repo}/commits/{sha}")
        if not data:
            return None
        return parse_github_timestamp(data["commit"]["committer"]["date"])

    async def count_tree_blobs(self, owner: str, repo: str, sha: str) -> int | None:
        """Number of files (blobs) at the top level of a tree.

        The tree is listed non-recursively, so files in subdirectories are
        not counted.
        """
        data = await self._fetch(f"/repos/{owner}/{repo}/git/trees/{sha}")
        if not data:
            return None
        return sum(1 for entry in data.get("tree", []) if entry and entry.get("type") == "blob")

    async def fetch_open_issue_dates(self, owner: str, repo: str) -> list[datetime]:
        """Creation dates of every open issue, pull requests excluded."""
        issues = await self._fetch_all_pages(f"/repos/{owner}/{repo}/issues", params={"state": "open"})
        # Filter out pull requests (they're included in issues endpoint)
        return [
            parse_github_timestamp(issue["created_at"])
            for issue in issues
            if "pull_request" not in issue
        ]

    async def has_readme(self, owner: str, repo: str) -> bool:
        return await self._exists(f"/repos/{owner}/{repo}/readme")

    async def has_file(self, owner: str, repo: str, path: str) -> bool:
        return await self._exists(f"/repos/{owner}/{repo}/contents/{path}")

    async def fetch_contributor_stats(self, owner: str, repo: str) -> ContributorStatsResult:
        """Fetch per-contributor commit totals.

        GitHub computes these statistics lazily and answers 202 while a
        computation is in progress; callers are expected to poll.

        Returns:
            READY with the stats (empty for 204), NOT_READY for 202, or ERROR
            for any other status or a transport failure. Never raises.
        """
        path = f"/repos/{owner}/{repo}/stats/contributors"
        try:
            response = await self._request(path)
        except httpx.RequestError as e:
            return ContributorStatsResult.failed(f"request error: {e}")

        if response.status_code == 202:
            return ContributorStatsResult.not_ready()
        if response.status_code == 204:
            return ContributorStatsResult.ready([])
        if response.status_code != 200:
            return ContributorStatsResult.failed(f"status {response.status_code}")

        try:
            stats = [
                ContributorStat(
                    author=(entry.get("author") or {}).get("login"),
                    total=entry.get("total", 0),
                )
                for entry in response.json() or []
            ]
        except (ValueError, AttributeError, TypeError) as e:
            return ContributorStatsResult.failed(f"unexpected response: {e!r}")
        return ContributorStatsResult.ready(stats)
