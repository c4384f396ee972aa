"""Shared HTTP helpers for the listing and wishlist fetchers."""

from urllib.parse import urlparse

import httpx

from wishmatch.config import settings
from wishmatch.models.failure import InvalidUrlError, SourceFetchError


def require_http_url(url: str, label: str) -> str:
    """
    Validate a user-supplied link.

    Returns:
        The trimmed URL

    Raises:
        InvalidUrlError: If the link is not an absolute http(s) URL
    """
    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidUrlError(f"Invalid {label} URL", detail=url or None)
    return url


async def fetch_text(url: str, source: str, client: httpx.AsyncClient | None = None) -> str:
    """
    GET a page and return its body as text.

    Args:
        url: Absolute URL
        source: Human-readable source name used in error messages
        client: Optional httpx client for connection reuse

    Raises:
        SourceFetchError: If the request fails or returns non-2xx
    """
    headers = {"User-Agent": settings.user_agent}
    try:
        if client:
            response = await client.get(url, headers=headers)
        else:
            async with httpx.AsyncClient(
                timeout=settings.http_timeout_seconds,
                follow_redirects=True,
            ) as own_client:
                response = await own_client.get(url, headers=headers)
    except httpx.HTTPError as e:
        raise SourceFetchError(f"Failed to fetch {source}", detail=str(e)) from e

    if not response.is_success:
        raise SourceFetchError(f"Failed to fetch {source} ({response.status_code})")

    return response.text
