"""
Best-effort GitHub downloads.

Every failure (transport error, non-2xx status, undecodable body) is absorbed
here and reported as an absent Download, so callers never need try/except
around upstream fetches.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from docsite.core.config import settings

logger = logging.getLogger(__name__)

# Media type GitHub uses to render markdown contents as HTML
HTML_MEDIA_TYPE = "application/vnd.github.3.html"


@dataclass(frozen=True)
class Download:
    """Outcome of one fetch: ok with a value, or absent."""
    ok: bool
    value: Any = None

    @classmethod
    def found(cls, value: Any) -> "Download":
        return cls(ok=True, value=value)

    @classmethod
    def absent(cls) -> "Download":
        return cls(ok=False)

    def or_none(self) -> Any:
        return self.value if self.ok else None


def default_headers() -> Dict[str, str]:
    """Headers sent with every GitHub request."""
    headers = {"user-agent": settings.USER_AGENT}
    if settings.GITHUB_TOKEN:
        headers["authorization"] = f"token {settings.GITHUB_TOKEN}"
    return headers


class Downloader:
    """
    Fetches a URL and decodes the payload.

    With json=True only JSON responses count as found; with json=False
    (rendered HTML docs) the body is returned as text.

    Args:
        client: Shared AsyncClient; when omitted a short-lived client is
            opened per download
        headers: Defaults merged under the per-call headers
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self._client = client
        self._headers = headers if headers is not None else default_headers()

    async def download(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        json: bool = True,
    ) -> Download:
        """
        Download a single URL.

        Args:
            url: Absolute URL to GET
            headers: Per-call headers, overriding defaults key by key
            json: Require and decode a JSON body; when False the body is always text

        Returns:
            Download.found(payload) on a 2xx response, Download.absent() otherwise
        """
        merged = {**self._headers, **(headers or {})}

        try:
            if self._client is not None:
                response = await self._client.get(url, headers=merged)
            else:
                timeout = httpx.Timeout(settings.HTTP_TIMEOUT_SECONDS)
                async with httpx.AsyncClient(timeout=timeout) as client:
                    response = await client.get(url, headers=merged)
        except httpx.HTTPError as e:
            logger.warning(f"Request to {url} failed: {e!r}")
            return Download.absent()

        if response.status_code == 403 and response.headers.get("X-RateLimit-Remaining") == "0":
            logger.warning(f"GitHub API rate limit exceeded fetching {url}")
            return Download.absent()

        if not response.is_success:
            logger.warning(f"GET {url} returned {response.status_code}")
            return Download.absent()

        content_type = response.headers.get("content-type", "")
        if not json:
            return Download.found(response.text)

        if "json" not in content_type:
            logger.warning(f"Expected JSON from {url}, got {content_type or 'no content type'}")
            return Download.absent()

        try:
            return Download.found(response.json())
        except ValueError as e:
            logger.warning(f"Could not decode JSON from {url}: {e}")
            return Download.absent()
