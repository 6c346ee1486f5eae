"""Mock transports and static analyzers shared by the pkghealth tests."""

from typing import Callable

import httpx

from pkghealth.adapters.base import PackageAnalyzer, SourceCodeAnalyzer, SourceCodeMapper
from pkghealth.models.schemas import ComponentIdentity, HealthRecord


def create_mock_transport(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.MockTransport:
    """Create a mock transport for httpx that routes requests to handler."""

    async def mock_handler(request: httpx.Request) -> httpx.Response:
        return handler(request)

    return httpx.MockTransport(mock_handler)


def route(routes: dict[str, httpx.Response | Callable[[httpx.Request], httpx.Response]]):
    """Handler answering by exact URL path; unknown paths get 404."""

    def handler(request: httpx.Request) -> httpx.Response:
        answer = routes.get(request.url.path)
        if answer is None:
            return httpx.Response(404, json={"message": "Not Found"})
        if callable(answer):
            answer = answer(request)
        # Fresh copy so one canned response can answer repeated requests
        return httpx.Response(answer.status_code, headers=answer.headers, content=answer.content)

    return handler


class StaticPackageAnalyzer(PackageAnalyzer):
    """Package analyzer returning fixed fields."""

    def __init__(self, fields: dict | None = None, types: tuple[str, ...] = ("npm",), name: str = "static") -> None:
        self.fields = fields or {}
        self.types = types
        self.name = name
        self.calls = 0

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return identity.type in self.types

    async def analyze(self, identity: ComponentIdentity) -> HealthRecord:
        self.calls += 1
        return HealthRecord(identity=identity, **self.fields)


class StaticMapper(SourceCodeMapper):
    """Mapper returning a fixed repository key (or None)."""

    def __init__(self, key: str | None, types: tuple[str, ...] = ("npm",), name: str = "static mapper") -> None:
        self.key = key
        self.types = types
        self.name = name
        self.calls = 0

    def is_applicable(self, identity: ComponentIdentity) -> bool:
        return identity.type in self.types

    async def find_source_code_for(self, identity: ComponentIdentity) -> str | None:
        self.calls += 1
        return self.key


class StaticSourceAnalyzer(SourceCodeAnalyzer):
    """Source code analyzer returning fixed fields for keys with a prefix."""

    def __init__(self, fields: dict | None = None, prefix: str = "github.com", name: str = "static source") -> None:
        self.fields = fields or {}
        self.prefix = prefix
        self.name = name
        self.keys: list[str] = []

    def is_applicable(self, repo_key: str) -> bool:
        return repo_key.startswith(self.prefix)

    async def analyze(self, identity: ComponentIdentity, repo_key: str) -> HealthRecord:
        self.keys.append(repo_key)
        return HealthRecord(identity=identity, **self.fields)
