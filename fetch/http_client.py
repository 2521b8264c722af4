import httpx
import logging
from dataclasses import dataclass
from typing import Optional, Dict
from urllib.parse import urlparse
from core.cache import ProbeCache, get_cache
from core.errors import FetchError

# Default timeout configuration (in seconds)
DEFAULT_TIMEOUT = 10.0
DEFAULT_CONNECT_TIMEOUT = 5.0
PROBE_TIMEOUT = 5.0

DEFAULT_USER_AGENT = "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36"


@dataclass(frozen=True)
class FetchedPage:
    """Raw response of a page: header block as text plus the decoded body."""
    url: str
    headers: str
    body: str
    status_code: Optional[int] = None


async def fetch_url(
    url: str,
    method: str = "GET",
    timeout: Optional[float] = None,
    connect_timeout: Optional[float] = None,
    headers: Optional[Dict[str, str]] = None,
):
    """
    Fetches the content of a URL with configurable timeouts.

    Redirects are followed; HTTP/2 is negotiated when the server offers it.

    Args:
        url: The URL to fetch
        method: HTTP method (GET, HEAD, ...)
        timeout: Total request timeout in seconds (default: 10s)
        connect_timeout: Connection timeout in seconds (default: 5s)
        headers: Optional extra request headers

    Returns:
        httpx.Response object
    """
    logger = logging.getLogger(__name__)
    logger.debug(f"HTTP {method} {url} (timeout: {timeout or DEFAULT_TIMEOUT}s)")

    timeout_config = httpx.Timeout(
        timeout=timeout or DEFAULT_TIMEOUT,
        connect=connect_timeout or DEFAULT_CONNECT_TIMEOUT
    )
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    request_headers.update(headers or {})

    try:
        async with httpx.AsyncClient(timeout=timeout_config, follow_redirects=True, http2=True) as client:
            response = await client.request(method, url, headers=request_headers)
            logger.debug(f"HTTP {response.status_code} {url} ({len(response.content)} bytes)")
            # Don't raise for status - callers decide what a status code means
            return response
    except httpx.TimeoutException as e:
        logger.warning(f"HTTP timeout for {url}: {e}")
        raise
    except httpx.RequestError as e:
        logger.warning(f"HTTP request error for {url}: {e}")
        raise


def format_headers(response: httpx.Response) -> str:
    """
    Render the response headers as raw text, one block per redirect hop.

    Each block starts with a status line such as ``HTTP/2 200 OK``, so the
    first line of the result belongs to the first response of the chain.
    """
    blocks = []
    for hop in [*response.history, response]:
        lines = [f"{hop.http_version} {hop.status_code} {hop.reason_phrase}".rstrip()]
        lines.extend(f"{name}: {value}" for name, value in hop.headers.multi_items())
        blocks.append("\n".join(lines))
    return "\n\n".join(blocks) + "\n"


async def fetch_page(url: str) -> FetchedPage:
    """
    Fetch a page's headers and body.

    Raises:
        FetchError: on timeouts, connection and DNS failures or invalid URLs
    """
    try:
        response = await fetch_url(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        raise FetchError(url, f"{type(e).__name__}: {e}") from e
    return FetchedPage(url=url, headers=format_headers(response), body=response.text, status_code=response.status_code)


async def probe_exists(url: str, cache: Optional[ProbeCache] = None) -> bool:
    """True if the URL answers 200. Failures count as absent."""
    logger = logging.getLogger(__name__)
    cache = cache if cache is not None else get_cache()
    cached = cache.get(url)
    if cached is not None:
        return cached

    try:
        response = await fetch_url(url, timeout=PROBE_TIMEOUT)
        exists = response.status_code == 200
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.debug(f"Probe failed for {url}: {type(e).__name__}")
        exists = False
    cache.set(url, exists)
    return exists


def normalize_url(url: str) -> str:
    """Prefix https:// when the URL carries no scheme."""
    url = url.strip()
    if not url.lower().startswith(("http://", "https://")):
        url = f"https://{url}"
    return url


def origin_of(url: str) -> str:
    """scheme://host[:port] of a URL, used to resolve well-known file paths."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"
