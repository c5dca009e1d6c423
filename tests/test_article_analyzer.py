from __future__ import annotations

import pytest

from agentic_search.agents.article_analyzer import ArticleAnalyzer
from agentic_search.models.errors import ArticleFetchError, OracleUnavailable
from agentic_search.models.interfaces import FetchedPage, FetchFailure


class StubFetcher:
    def __init__(self, outcome):
        self.outcome = outcome

    async def fetch(self, url):
        return self.outcome


class StubOracle:
    def __init__(self, reply):
        self.reply = reply
        self.prompts: list[str] = []

    async def generate(self, prompt, *, caller):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


ARTICLE_REPLY = """SUMMARY:
Tides are caused by the moon's gravity.

KEY POINTS:
• The moon pulls the oceans
• Two high tides occur each day
"""


@pytest.mark.asyncio
async def test_analyze_parses_summary_and_key_points():
    page = FetchedPage(
        url="https://example.com/tides",
        content=" ".join(["word"] * 450),
        title="Tides",
        metadata={"title": "How tides work", "author": " Ada ", "publishedDate": ""},
    )
    oracle = StubOracle(ARTICLE_REPLY)
    analyzer = ArticleAnalyzer(oracle=oracle, fetcher=StubFetcher(page))

    analysis = await analyzer.analyze("https://example.com/tides")

    assert analysis.title == "How tides work"
    assert analysis.summary == "Tides are caused by the moon's gravity."
    assert analysis.key_points == ["The moon pulls the oceans", "Two high tides occur each day"]
    assert analysis.word_count == 450
    assert analysis.reading_time_minutes == 3
    assert analysis.author == "Ada"
    assert analysis.published_date is None
    assert analysis.preview.endswith("...")
    assert "Title: How tides work" in oracle.prompts[0]


@pytest.mark.asyncio
async def test_unstructured_reply_becomes_summary():
    page = FetchedPage(url="https://example.com", content="short text", title="x")
    analyzer = ArticleAnalyzer(oracle=StubOracle("Just a paragraph."), fetcher=StubFetcher(page))

    analysis = await analyzer.analyze("https://example.com")

    assert analysis.title == "Untitled"
    assert analysis.summary == "Just a paragraph."
    assert analysis.key_points == []


@pytest.mark.asyncio
async def test_failed_fetch_raises_article_fetch_error():
    analyzer = ArticleAnalyzer(
        oracle=StubOracle(ARTICLE_REPLY),
        fetcher=StubFetcher(FetchFailure(url="https://example.com", error="HTTP 404")),
    )

    with pytest.raises(ArticleFetchError, match="HTTP 404"):
        await analyzer.analyze("https://example.com")


@pytest.mark.asyncio
async def test_empty_page_raises_article_fetch_error():
    page = FetchedPage(url="https://example.com", content="   ", title="x")
    oracle = StubOracle(ARTICLE_REPLY)
    analyzer = ArticleAnalyzer(oracle=oracle, fetcher=StubFetcher(page))

    with pytest.raises(ArticleFetchError):
        await analyzer.analyze("https://example.com")
    assert oracle.prompts == []


@pytest.mark.asyncio
async def test_oracle_failure_propagates():
    page = FetchedPage(url="https://example.com", content="text", title="x")
    analyzer = ArticleAnalyzer(
        oracle=StubOracle(OracleUnavailable("down")), fetcher=StubFetcher(page)
    )

    with pytest.raises(OracleUnavailable):
        await analyzer.analyze("https://example.com")
