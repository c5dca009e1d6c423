from __future__ import annotations

import math

from loguru import logger
from pydantic import BaseModel

from agentic_search.llm_client import oracle as default_oracle
from agentic_search.models.errors import ArticleFetchError
from agentic_search.models.interfaces import ContentFetcher, FetchedPage, TextOracle
from agentic_search.services import reply_parser
from agentic_search.services.prompt_store import render_prompt
from agentic_search.tools import web_utils
from agentic_search.tools.firecrawl_scraper import FirecrawlFetcher

WORDS_PER_MINUTE = 200
PROMPT_CONTENT_CHARS = 4000
PREVIEW_CHARS = 300


def _text_or_none(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value.strip() or None


class ArticleAnalysis(BaseModel):
    url: str
    title: str
    preview: str
    word_count: int
    reading_time_minutes: int
    summary: str
    key_points: list[str] = []
    author: str | None = None
    published_date: str | None = None


class ArticleAnalyzer:
    """Fetches one page and asks the oracle for a summary and key points."""

    def __init__(
        self,
        *,
        oracle: TextOracle | None = None,
        fetcher: ContentFetcher | None = None,
    ):
        self.oracle = oracle or default_oracle()
        self.fetcher = fetcher or FirecrawlFetcher.from_settings()

    async def analyze(self, url: str) -> ArticleAnalysis:
        outcome = await self.fetcher.fetch(url)
        if not isinstance(outcome, FetchedPage):
            raise ArticleFetchError(url, outcome.error)
        if not outcome.content.strip():
            raise ArticleFetchError(url, "page has no extractable content")

        title = str(outcome.metadata.get("title") or "").strip() or "Untitled"
        reply = await self.oracle.generate(
            render_prompt(
                "oracle.analyze_article",
                title=title,
                url=url,
                content=outcome.content[:PROMPT_CONTENT_CHARS],
            ),
            caller="analyze_article",
        )

        summary = reply_parser.extract_section(reply, "SUMMARY", until="KEY POINTS")
        key_points_text = reply_parser.extract_section(reply, "KEY POINTS") or ""
        word_count = len(outcome.content.split())
        logger.info(f"Analyzed {url}: {word_count} words")

        return ArticleAnalysis(
            url=url,
            title=title,
            preview=web_utils.clean_content(outcome.content, max_length=PREVIEW_CHARS),
            word_count=word_count,
            reading_time_minutes=math.ceil(word_count / WORDS_PER_MINUTE),
            summary=summary or reply.strip(),
            key_points=reply_parser.extract_bullets(key_points_text),
            author=_text_or_none(outcome.metadata.get("author")),
            published_date=_text_or_none(outcome.metadata.get("publishedDate")),
        )
