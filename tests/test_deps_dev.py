"""Tests for the deps.dev fetcher and deps.dev backed analyzers."""

from datetime import datetime, timezone

import httpx
import pytest

from pkghealth.adapters.deps_dev import (
    DepsDevPackageAnalyzer,
    DepsDevSourceCodeAnalyzer,
    DepsDevSourceCodeMapper,
)
from pkghealth.analyzers.deps_dev import DepsDevFetcher, parse_project
from pkghealth.models.schemas import ComponentIdentity

from tests.helpers import create_mock_transport, route

PACKAGE = {
    "packageKey": {"system": "NPM", "name": "lodash"},
    "versions": [
        {"versionKey": {"system": "NPM", "name": "lodash", "version": "4.17.20"}, "isDefault": False},
        {"versionKey": {"system": "NPM", "name": "lodash", "version": "4.17.21"}, "isDefault": True},
    ],
}

VERSION = {
    "versionKey": {"system": "NPM", "name": "lodash", "version": "4.17.21"},
    "relatedProjects": [
        {"projectKey": {"id": "github.com/lodash/lodash-cli"}, "relationType": "ISSUE_TRACKER"},
        {"projectKey": {"id": "github.com/lodash/lodash"}, "relationType": "SOURCE_REPO"},
    ],
}

PROJECT = {
    "projectKey": {"id": "github.com/lodash/lodash"},
    "openIssuesCount": 12,
    "starsCount": 58000,
    "forksCount": 7000,
    "scorecard": {
        "date": "2024-05-20T00:00:00Z",
        "scorecard": {"version": "v4.13.1", "commit": "abc"},
        "overallScore": 5.4,
        "checks": [
            {
                "name": "Maintained",
                "documentation": {
                    "shortDescription": "Determines if the project is actively maintained.",
                    "url": "https://github.com/ossf/scorecard/blob/main/docs/checks.md#maintained",
                },
                "score": 10,
                "reason": "30 commit(s) out of 30 and 2 issue activity out of 30 found in the last 90 days",
                "details": [],
            },
            {
                "name": "Binary-Artifacts",
                "documentation": {"shortDescription": "Binaries in repo", "url": "https://example.org"},
                "score": 9,
                "reason": "binaries present in source code",
                "details": ["Warn: binary detected: test/fixtures/file.exe:1"],
            },
        ],
    },
}

BASE = "/v3/systems/NPM/packages/lodash"


def make_fetcher(routes: dict) -> DepsDevFetcher:
    client = httpx.AsyncClient(transport=create_mock_transport(route(routes)))
    return DepsDevFetcher(client=client)


class TestDepsDevFetcher:
    """Tests for DepsDevFetcher."""

    @pytest.mark.asyncio
    async def test_fetch_latest_version(self):
        fetcher = make_fetcher({BASE: httpx.Response(200, json=PACKAGE)})

        assert await fetcher.fetch_latest_version("NPM", "lodash") == "4.17.21"

    @pytest.mark.asyncio
    async def test_latest_version_without_default(self):
        data = {"versions": [{"versionKey": {"version": "1.0.0"}, "isDefault": False}]}
        fetcher = make_fetcher({BASE: httpx.Response(200, json=data)})

        assert await fetcher.fetch_latest_version("NPM", "lodash") is None

    @pytest.mark.asyncio
    async def test_fetch_dependents(self):
        path = "/v3alpha/systems/NPM/packages/lodash/versions/4.17.21:dependents"
        fetcher = make_fetcher({path: httpx.Response(200, json={"dependentCount": 170000})})

        assert await fetcher.fetch_dependents("NPM", "lodash", "4.17.21") == 170000

    @pytest.mark.asyncio
    async def test_fetch_source_repo_project_key(self):
        fetcher = make_fetcher({f"{BASE}/versions/4.17.21": httpx.Response(200, json=VERSION)})

        key = await fetcher.fetch_source_repo_project_key("NPM", "lodash", "4.17.21")

        assert key == "github.com/lodash/lodash"

    @pytest.mark.asyncio
    async def test_no_source_repo(self):
        data = {"relatedProjects": [{"projectKey": {"id": "x"}, "relationType": "ISSUE_TRACKER"}]}
        fetcher = make_fetcher({f"{BASE}/versions/1.0.0": httpx.Response(200, json=data)})

        assert await fetcher.fetch_source_repo_project_key("NPM", "lodash", "1.0.0") is None

    @pytest.mark.asyncio
    async def test_name_is_url_encoded(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.raw_path.decode())
            return httpx.Response(200, json=PACKAGE)

        client = httpx.AsyncClient(transport=create_mock_transport(handler))
        fetcher = DepsDevFetcher(client=client)

        await fetcher.fetch_latest_version("MAVEN", "org.apache commons:commons-lang3")

        assert seen == ["/v3/systems/MAVEN/packages/org.apache%20commons%3Acommons-lang3"]

    @pytest.mark.asyncio
    async def test_server_error_returns_none(self, caplog):
        fetcher = make_fetcher({BASE: httpx.Response(500, text="boom")})

        assert await fetcher.fetch_latest_version("NPM", "lodash") is None
        assert "API returned status 500" in caplog.text

    @pytest.mark.asyncio
    async def test_not_found_returns_none(self):
        fetcher = make_fetcher({})

        assert await fetcher.fetch_latest_version("NPM", "lodash") is None

    @pytest.mark.asyncio
    async def test_invalid_json_returns_none(self):
        fetcher = make_fetcher({BASE: httpx.Response(200, text="<html>")})

        assert await fetcher.fetch_latest_version("NPM", "lodash") is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=create_mock_transport(handler))
        fetcher = DepsDevFetcher(client=client)

        assert await fetcher.fetch_latest_version("NPM", "lodash") is None

    def test_system_lookup(self):
        fetcher = DepsDevFetcher(systems={"npm": "NPM"})

        assert fetcher.system_for("npm") == "NPM"
        assert fetcher.system_for("NPM") == "NPM"
        assert fetcher.system_for("pypi") is None


class TestParseProject:
    """Tests for parse_project."""

    def test_full_project(self):
        fields = parse_project(PROJECT)

        assert fields["open_issues"] == 12
        assert fields["stars"] == 58000
        assert fields["forks"] == 7000
        assert fields["scorecard_score"] == 5.4
        assert fields["scorecard_reference_version"] == "v4.13.1"
        assert fields["scorecard_timestamp"] == datetime(2024, 5, 20, tzinfo=timezone.utc)

        checks = fields["scorecard_checks"]
        assert [c.name for c in checks] == ["Maintained", "Binary-Artifacts"]
        assert checks[0].score == 10.0
        assert checks[0].description == "Determines if the project is actively maintained."
        assert checks[0].documentation_url.endswith("#maintained")
        assert checks[1].details == ["Warn: binary detected: test/fixtures/file.exe:1"]

    def test_project_without_scorecard(self):
        fields = parse_project({"starsCount": 3, "forksCount": 1, "openIssuesCount": 0})

        assert fields == {"stars": 3, "forks": 1, "open_issues": 0}

    def test_missing_counts_are_omitted(self):
        assert parse_project({"projectKey": {"id": "gitlab.com/a/b"}}) == {}


class TestDepsDevPackageAnalyzer:
    """Tests for DepsDevPackageAnalyzer."""

    @pytest.mark.asyncio
    async def test_dependents_for_actual_version(self, npm_identity):
        analyzer = DepsDevPackageAnalyzer(
            make_fetcher(
                {
                    BASE: httpx.Response(200, json=PACKAGE),
                    "/v3alpha/systems/NPM/packages/lodash/versions/4.17.21:dependents": httpx.Response(
                        200, json={"dependentCount": 42}
                    ),
                }
            )
        )

        record = await analyzer.analyze(npm_identity)

        assert record.identity == npm_identity
        assert record.dependents == 42

    @pytest.mark.asyncio
    async def test_falls_back_to_latest_version(self):
        identity = ComponentIdentity(type="npm", name="lodash", version="0.0.1-unknown")
        analyzer = DepsDevPackageAnalyzer(
            make_fetcher(
                {
                    BASE: httpx.Response(200, json=PACKAGE),
                    "/v3alpha/systems/NPM/packages/lodash/versions/4.17.21:dependents": httpx.Response(
                        200, json={"dependentCount": 99}
                    ),
                }
            )
        )

        record = await analyzer.analyze(identity)

        assert record.dependents == 99

    @pytest.mark.asyncio
    async def test_unversioned_identity_uses_latest(self):
        identity = ComponentIdentity(type="npm", name="lodash")
        analyzer = DepsDevPackageAnalyzer(
            make_fetcher(
                {
                    BASE: httpx.Response(200, json=PACKAGE),
                    "/v3alpha/systems/NPM/packages/lodash/versions/4.17.21:dependents": httpx.Response(
                        200, json={"dependentCount": 7}
                    ),
                }
            )
        )

        assert (await analyzer.analyze(identity)).dependents == 7

    @pytest.mark.asyncio
    async def test_no_latest_version_gives_empty_record(self, npm_identity, caplog):
        analyzer = DepsDevPackageAnalyzer(make_fetcher({}))

        record = await analyzer.analyze(npm_identity)

        assert record.is_empty()
        assert "Could not determine latest version" in caplog.text

    @pytest.mark.asyncio
    async def test_no_dependents_gives_empty_record(self, npm_identity, caplog):
        analyzer = DepsDevPackageAnalyzer(make_fetcher({BASE: httpx.Response(200, json=PACKAGE)}))

        record = await analyzer.analyze(npm_identity)

        assert record.dependents is None
        assert "Could not determine dependents" in caplog.text

    def test_applicability(self, npm_identity):
        analyzer = DepsDevPackageAnalyzer(DepsDevFetcher())

        assert analyzer.is_applicable(npm_identity)
        assert analyzer.is_applicable(ComponentIdentity(type="golang", namespace="github.com/x", name="y"))
        assert not analyzer.is_applicable(ComponentIdentity(type="conda", name="numpy"))


class TestDepsDevSourceCodeMapper:
    """Tests for DepsDevSourceCodeMapper."""

    @pytest.mark.asyncio
    async def test_maps_latest_version_to_project(self, npm_identity):
        mapper = DepsDevSourceCodeMapper(
            make_fetcher(
                {
                    BASE: httpx.Response(200, json=PACKAGE),
                    f"{BASE}/versions/4.17.21": httpx.Response(200, json=VERSION),
                }
            )
        )

        assert await mapper.find_source_code_for(npm_identity) == "github.com/lodash/lodash"

    @pytest.mark.asyncio
    async def test_maven_name_joins_group_with_colon(self, maven_identity):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=create_mock_transport(handler))
        mapper = DepsDevSourceCodeMapper(DepsDevFetcher(client=client))

        assert await mapper.find_source_code_for(maven_identity) is None
        assert seen == ["/v3/systems/MAVEN/packages/com.google.guava:guava"]

    @pytest.mark.asyncio
    async def test_no_related_project(self, npm_identity, caplog):
        caplog.set_level("INFO")
        mapper = DepsDevSourceCodeMapper(
            make_fetcher(
                {
                    BASE: httpx.Response(200, json=PACKAGE),
                    f"{BASE}/versions/4.17.21": httpx.Response(200, json={"relatedProjects": []}),
                }
            )
        )

        assert await mapper.find_source_code_for(npm_identity) is None
        assert "Could not determine source code project" in caplog.text


class TestDepsDevSourceCodeAnalyzer:
    """Tests for DepsDevSourceCodeAnalyzer."""

    @pytest.mark.asyncio
    async def test_project_fields(self, npm_identity):
        analyzer = DepsDevSourceCodeAnalyzer(
            make_fetcher({"/v3/projects/github.com/lodash/lodash": httpx.Response(200, json=PROJECT)})
        )

        record = await analyzer.analyze(npm_identity, "github.com/lodash/lodash")

        assert record.identity == npm_identity
        assert record.stars == 58000
        assert record.scorecard_score == 5.4
        assert len(record.scorecard_checks) == 2

    @pytest.mark.asyncio
    async def test_malformed_scorecard_date_gives_empty_record(self, npm_identity):
        broken = {**PROJECT, "scorecard": {**PROJECT["scorecard"], "date": "yesterday"}}
        analyzer = DepsDevSourceCodeAnalyzer(
            make_fetcher({"/v3/projects/github.com/lodash/lodash": httpx.Response(200, json=broken)})
        )

        record = await analyzer.analyze(npm_identity, "github.com/lodash/lodash")

        assert record.is_empty()

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("github.com/lodash/lodash", True),
            ("gitlab.com/libeigen/eigen", True),
            ("bitbucket.org/a/b", True),
            ("sourceforge.net/p/x", False),
        ],
    )
    def test_applicability(self, key, expected):
        assert DepsDevSourceCodeAnalyzer(DepsDevFetcher()).is_applicable(key) is expected
