"""Shared HTTP plumbing for provider fetchers."""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ApiFetcher:
    """Base class for JSON API fetchers.

    Fetchers either share an injected ``httpx.AsyncClient`` or open one per
    request and close it afterwards.
    """

    name = "api"

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = 30.0) -> None:
        """Initialize the fetcher.

        Args:
            client: Optional httpx client. If not provided, creates one per request.
            timeout: Timeout in seconds for per-request clients.
        """
        self._client = client
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        """Headers sent with every request."""
        return {}

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create an HTTP client."""
        if self._client is not None:
            return self._client
        return httpx.AsyncClient(timeout=self._timeout)

    async def _fetch_json(
        self,
        url: str,
        parser: Callable[[Any], T] | None = None,
        params: dict | None = None,
    ) -> T | None:
        """GET a URL and parse its JSON body.

        Args:
            url: Absolute URL to fetch.
            parser: Turns the decoded JSON into the result. Identity if omitted.
            params: Optional query parameters.

        Returns:
            Parsed result, or None if the request failed, the status was not
            2xx, the body was not JSON, or the parser rejected its shape.
        """
        client = await self._get_client()
        try:
            response = await client.get(url, params=params, headers=self._headers())
            response.raise_for_status()
            data = response.json()
            return parser(data) if parser is not None else data
        except httpx.HTTPStatusError as e:
            if e.response.status_code == 404:
                logger.debug(f"{self.name}: Not found: {url}")
            else:
                logger.warning(f"{self.name}: API returned status {e.response.status_code} for {url}")
            return None
        except httpx.RequestError as e:
            logger.warning(f"{self.name}: request error for {url}: {e}")
            return None
        except (KeyError, TypeError, ValueError) as e:
            # JSON decode error or unexpected response shape
            logger.warning(f"{self.name}: could not parse response for {url}: {e!r}")
            return None
        finally:
            if self._client is None:
                await client.aclose()


async def safe_fetch(
    call: Callable[[], Awaitable[T]],
    default: T,
    description: str = "value",
) -> T:
    """Await ``call()`` and fall back to ``default`` on provider errors.

    Args:
        call: Zero-argument coroutine factory.
        default: Value returned when the call fails.
        description: What is being fetched, for the log message.

    Returns:
        The call's result, or ``default``.
    """
    try:
        return await call()
    except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
        logger.warning(f"Failed to fetch {description}: {e!r}")
        return default
