from __future__ import annotations

from agentic_search.agents.article_analyzer import ArticleAnalyzer
from agentic_search.agents.orchestrator import ResearchOrchestrator


def get_orchestrator() -> ResearchOrchestrator:
    """Orchestrator wired to the configured oracle and fetcher."""
    return ResearchOrchestrator()


def get_article_analyzer() -> ArticleAnalyzer:
    return ArticleAnalyzer()
