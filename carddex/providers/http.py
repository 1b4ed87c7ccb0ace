"""
Outbound JSON fetching shared by every provider adapter.

Adds the default headers, maps error statuses onto the ingestion error
taxonomy and decodes the body. Shapes are not validated here; adapters
default missing fields.
"""

import logging
from collections.abc import AsyncGenerator, Mapping
from typing import Any

import httpx

from carddex.config import settings
from carddex.providers.errors import MalformedResponseError, RateLimitedError, UpstreamError

logger = logging.getLogger(__name__)


def default_headers() -> dict[str, str]:
    return {
        "Accept": "application/json",
        "User-Agent": settings.user_agent,
    }


def build_client(timeout: float | None = None) -> httpx.AsyncClient:
    """Create the HTTP client used for a population run."""
    return httpx.AsyncClient(
        timeout=timeout if timeout is not None else settings.http_timeout,
        follow_redirects=True,
    )


async def get_http_client() -> AsyncGenerator[httpx.AsyncClient, None]:
    """Dependency that provides an outbound client for one request."""
    async with build_client() as client:
        yield client


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    headers: Mapping[str, str] | None = None,
    params: Mapping[str, Any] | None = None,
) -> Any:
    """
    GET a URL and decode the JSON body.

    Args:
        client: Shared async client
        url: Absolute URL
        headers: Extra headers (API keys etc.), these win over the defaults
        params: Query parameters

    Returns:
        Decoded JSON (dict or list, as the provider sends it)

    Raises:
        RateLimitedError: HTTP 429
        UpstreamError: Any other non-2xx status
        MalformedResponseError: Body is not JSON
        httpx.RequestError: Network failure
    """
    merged = default_headers()
    if headers:
        merged.update(headers)

    response = await client.get(url, headers=merged, params=params)

    if response.status_code == 429:
        logger.warning("Rate limited by %s", url)
        raise RateLimitedError(url)
    if not response.is_success:
        raise UpstreamError(response.status_code, response.reason_phrase, url)

    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(f"Invalid JSON from {url}: {e}") from e
