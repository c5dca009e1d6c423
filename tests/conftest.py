from __future__ import annotations

import asyncio
import os

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from agentic_search.agents.source_selector import SourceSelector
from agentic_search.models.interfaces import FetchedPage, FetchFailure
from agentic_search.tools import web_utils


class ScriptedOracle:
    """Oracle double answering per caller.

    A reply may be a string, an exception instance (raised), or a list of
    those consumed in order with the last entry repeating.
    """

    def __init__(self, **replies):
        self.replies = {
            "plan": "QUERY: firecrawl overview\nTOPICS: crawling, scraping\nTYPE: documentation",
            "extract": "• Firecrawl turns websites into LLM-ready markdown\n• It offers scrape and crawl endpoints",
            "assess": "CONFIDENCE: 90\nREASONING: Enough information\nNEXT_QUERY: none",
            "synthesize": "Firecrawl is an API that converts websites into clean markdown.",
        }
        self.replies.update(replies)
        self.calls: list[tuple[str, str]] = []

    async def generate(self, prompt: str, *, caller: str) -> str:
        self.calls.append((caller, prompt))
        reply = self.replies[caller]
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply

    @property
    def callers(self) -> list[str]:
        return [caller for caller, _ in self.calls]

    def prompts_for(self, caller: str) -> list[str]:
        return [prompt for name, prompt in self.calls if name == caller]


class FakeFetcher:
    def __init__(
        self,
        *,
        failing: set[str] | None = None,
        fail_all: bool = False,
        raising: set[str] | None = None,
        content: str | None = None,
        delays: dict[str, float] | None = None,
    ):
        self.failing = failing or set()
        self.fail_all = fail_all
        self.raising = raising or set()
        self.content = content
        self.delays = delays or {}
        self.requested: list[str] = []

    async def fetch(self, url: str):
        self.requested.append(url)
        if url in self.delays:
            await asyncio.sleep(self.delays[url])
        if url in self.raising:
            raise RuntimeError(f"fetcher broke on {url}")
        if self.fail_all or url in self.failing:
            return FetchFailure(url=url, error="HTTP 503")
        host = web_utils.display_title(url)
        return FetchedPage(
            url=url,
            content=self.content if self.content is not None else f"Content from {host}",
            title=f"{host} page",
        )


@pytest.fixture
def oracle() -> ScriptedOracle:
    return ScriptedOracle()


@pytest.fixture
def fetcher() -> FakeFetcher:
    return FakeFetcher()


@pytest.fixture
def selector() -> SourceSelector:
    return SourceSelector.default()
