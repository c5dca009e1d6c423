from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx
from loguru import logger

from agentic_search.config import settings
from agentic_search.models.interfaces import FetchedPage, FetchFailure, FetchResult
from agentic_search.tools import web_utils


class FirecrawlResponseError(RuntimeError):
    pass


def _parse_scrape_payload(url: str, payload: Any) -> FetchedPage:
    if not isinstance(payload, dict):
        raise FirecrawlResponseError("Firecrawl response is not a JSON object")
    if payload.get("success") is False:
        raise FirecrawlResponseError(str(payload.get("error") or "Scrape failed"))

    body = payload.get("data", payload)
    if not isinstance(body, dict):
        raise FirecrawlResponseError("Firecrawl response missing data")
    metadata = body.get("metadata")
    if not isinstance(metadata, dict):
        metadata = {}

    title = str(metadata.get("title") or "").strip() or web_utils.display_title(url)
    return FetchedPage(
        url=url,
        content=str(body.get("markdown") or ""),
        title=title,
        metadata=metadata,
    )


class FirecrawlFetcher:
    """Content fetcher backed by the Firecrawl scrape endpoint.

    Failures come back as ``FetchFailure`` values; nothing but cancellation
    escapes ``fetch``.
    """

    def __init__(
        self,
        *,
        base_url: str = "https://api.firecrawl.dev",
        api_key: str = "",
        timeout_seconds: float = 30.0,
        retry_max: int = 0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.strip().rstrip("/")
        self.api_key = api_key.strip()
        self.timeout_seconds = max(float(timeout_seconds), 1.0)
        self.max_attempts = max(int(retry_max), 0) + 1
        self._http_client = http_client

    @classmethod
    def from_settings(cls) -> "FirecrawlFetcher":
        return cls(
            base_url=settings.firecrawl_base_url,
            api_key=settings.firecrawl_api_key,
            timeout_seconds=settings.fetch_timeout_seconds,
            retry_max=settings.fetch_retry_max,
        )

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/v1/scrape"

    async def fetch(self, url: str) -> FetchResult:
        if not web_utils.is_valid_url(url):
            return FetchFailure(url=url, error="invalid URL")
        if not self.base_url:
            return FetchFailure(url=url, error="Firecrawl base URL not configured")

        started = time.monotonic()
        last_error = ""
        for attempt in range(1, self.max_attempts + 1):
            try:
                page = await asyncio.wait_for(
                    self._scrape(url), timeout=self.timeout_seconds
                )
                logger.debug(
                    f"Fetched {url} in {int((time.monotonic() - started) * 1000)}ms "
                    f"(attempt {attempt}, {len(page.content)} chars)"
                )
                return page
            except asyncio.TimeoutError:
                last_error = f"timed out after {self.timeout_seconds:.0f}s"
            except (httpx.HTTPError, FirecrawlResponseError, ValueError) as exc:
                last_error = str(exc) or exc.__class__.__name__
            if attempt < self.max_attempts:
                await asyncio.sleep(min(0.25 * attempt, 1.0))

        logger.warning(f"Failed to scrape {url}: {last_error}")
        return FetchFailure(url=url, error=last_error)

    async def _scrape(self, url: str) -> FetchedPage:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        payload = {"url": url, "formats": ["markdown"]}

        if self._http_client is not None:
            response = await self._http_client.post(self.endpoint, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                follow_redirects=True,
            ) as client:
                response = await client.post(self.endpoint, json=payload, headers=headers)
        response.raise_for_status()
        return _parse_scrape_payload(url, response.json())
