"""Candidate source selection by topic routing over fixed source pools."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from string import Template
from typing import Any

from agentic_search.config import settings
from agentic_search.models.research import Source
from agentic_search.tools import web_utils

DEFAULT_POOLS_PATH = Path(__file__).resolve().parents[1] / "sources" / "source_pools.json"


@dataclass(frozen=True)
class TopicRoute:
    name: str
    keywords: tuple[str, ...]
    urls: tuple[str, ...]

    def matches(self, query: str) -> bool:
        lowered = query.lower()
        return any(keyword in lowered for keyword in self.keywords)


@dataclass(frozen=True)
class FallbackPool:
    name: str
    url_templates: tuple[str, ...]

    def expand(self, query: str) -> tuple[str, ...]:
        values = {
            "query": web_utils.encode_component(query),
            "wiki_title": web_utils.encode_component(query.replace(" ", "_")),
        }
        return _unique(Template(t).safe_substitute(values) for t in self.url_templates)


def _unique(urls: Any) -> tuple[str, ...]:
    return tuple(dict.fromkeys(u for u in urls if u))


class SourceSelector:
    """Routes a query to a source pool and pages through it per iteration.

    Pure and deterministic: the same (query, iteration_index, limit) always
    yields the same candidates, and no network access happens here.
    """

    def __init__(self, routes: list[TopicRoute], fallback: FallbackPool):
        self.routes = list(routes)
        self.fallback = fallback

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "SourceSelector":
        if not isinstance(payload, dict):
            raise ValueError("Source pool table must be a JSON object.")
        routes: list[TopicRoute] = []
        for raw in payload.get("routes", []):
            keywords = tuple(
                str(k).lower().strip() for k in raw.get("keywords", []) if str(k).strip()
            )
            if not keywords:
                raise ValueError(f"Route {raw.get('name', '?')!r} has no keywords")
            routes.append(
                TopicRoute(
                    name=str(raw.get("name") or keywords[0]),
                    keywords=keywords,
                    urls=_unique(str(u).strip() for u in raw.get("urls", [])),
                )
            )
        raw_fallback = payload.get("fallback") or {}
        fallback = FallbackPool(
            name=str(raw_fallback.get("name") or "general"),
            url_templates=tuple(str(t) for t in raw_fallback.get("url_templates", [])),
        )
        return cls(routes, fallback)

    @classmethod
    def from_file(cls, path: str | Path) -> "SourceSelector":
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        return cls.from_dict(payload)

    @classmethod
    def default(cls) -> "SourceSelector":
        configured = settings.source_pools_path.strip()
        return cls.from_file(configured or DEFAULT_POOLS_PATH)

    def route(self, query: str) -> tuple[str, tuple[str, ...]]:
        """Return (pool name, pool URLs); first matching route wins."""
        for topic in self.routes:
            if topic.matches(query):
                return topic.name, topic.urls
        return self.fallback.name, self.fallback.expand(query)

    def select(self, query: str, iteration_index: int, limit: int) -> list[Source]:
        if iteration_index < 0:
            raise ValueError("iteration_index must be >= 0")
        if limit < 1:
            raise ValueError("limit must be >= 1")
        _, pool = self.route(query)
        start = iteration_index * limit
        return [Source.from_url(url) for url in pool[start : start + limit]]
