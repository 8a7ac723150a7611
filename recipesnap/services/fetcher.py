from __future__ import annotations

import html
import logging
import re
from typing import Optional

import httpx

from .errors import NetworkTimeoutError, ScrapeFailedError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
PREVIEW_TIMEOUT_SECONDS = 10.0
USER_AGENT = "Mozilla/5.0 (compatible; RecipeSnapBot/1.0; +https://recipesnap.vercel.app)"

_OG_PROPERTY = r"""(?:property|name)\s*=\s*["']og:image(?::secure_url)?["']"""
_OG_CONTENT = r"""content\s*=\s*(?:"(?P<double>[^"]*)"|'(?P<single>[^']*)')"""

OG_IMAGE_PATTERNS = (
    # <meta property="og:image" content="...">
    re.compile(rf"<meta[^>]*{_OG_PROPERTY}[^>]*{_OG_CONTENT}[^>]*>", re.IGNORECASE),
    # <meta content="..." property="og:image">
    re.compile(rf"<meta[^>]*{_OG_CONTENT}[^>]*{_OG_PROPERTY}[^>]*>", re.IGNORECASE),
)


def extract_og_image(markup: str | None) -> str | None:
    if not markup:
        return None

    for pattern in OG_IMAGE_PATTERNS:
        match = pattern.search(markup)
        if not match:
            continue
        raw = match.group("double") if match.group("double") is not None else match.group("single")
        candidate = html.unescape(raw).strip()
        if candidate:
            return candidate

    return None


def _clean_markdown(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


class WebContentFetcher:
    """Fetches page markup for preview images and page text via the scrape service."""

    def __init__(
        self,
        scrape_api_url: str,
        scrape_api_key: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.scrape_api_url = scrape_api_url
        self.scrape_api_key = scrape_api_key
        self.timeout = timeout
        self._transport = transport

    def _client(self, timeout: float) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        )

    async def fetch_preview_image(self, url: str) -> str | None:
        """Best-effort og:image lookup. Never raises."""
        try:
            async with self._client(PREVIEW_TIMEOUT_SECONDS) as client:
                response = await client.get(url)
                response.raise_for_status()
                image_url = extract_og_image(response.text)
        except Exception as error:  # lookup is optional; any failure means no preview
            logger.warning("preview.fail url=%s error=%s", url, error)
            return None

        logger.debug("preview.ok url=%s image=%s", url, image_url)
        return image_url

    async def scrape_markdown(self, url: str) -> str:
        payload = {"url": url, "formats": ["markdown"], "onlyMainContent": True}
        headers = {"Authorization": f"Bearer {self.scrape_api_key}"}

        try:
            async with self._client(self.timeout) as client:
                response = await client.post(self.scrape_api_url, json=payload, headers=headers)
                response.raise_for_status()
                body = response.json()
        except httpx.TimeoutException as error:
            raise NetworkTimeoutError(url, self.timeout) from error
        except httpx.HTTPStatusError as error:
            raise ScrapeFailedError(
                f"Scrape service returned HTTP {error.response.status_code} for {url}"
            ) from error
        except httpx.HTTPError as error:
            raise ScrapeFailedError(f"Scrape service request failed: {error}") from error
        except ValueError as error:
            raise ScrapeFailedError(f"Scrape service returned invalid JSON: {error}") from error

        if not isinstance(body, dict) or not body.get("success"):
            reason = body.get("error") if isinstance(body, dict) else None
            raise ScrapeFailedError(f"Scrape service reported failure for {url}: {reason or 'unknown error'}")

        data = body.get("data") if isinstance(body.get("data"), dict) else {}
        markdown = _clean_markdown(data.get("markdown"))
        if not markdown:
            raise ScrapeFailedError(f"Scrape service returned no content for {url}")

        logger.info("scrape.ok url=%s chars=%d", url, len(markdown))
        return markdown
