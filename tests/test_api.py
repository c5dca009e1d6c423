"""Tests for API routes."""
import json

import pytest
from fastapi.testclient import TestClient

from agentic_search.agents.article_analyzer import ArticleAnalyzer
from agentic_search.agents.orchestrator import ResearchOrchestrator
from agentic_search.agents.source_selector import SourceSelector
from agentic_search.api.deps import get_article_analyzer, get_orchestrator
from agentic_search.main import app
from agentic_search.models.errors import OracleUnavailable
from agentic_search.models.interfaces import FetchFailure
from agentic_search.models.research import Phase, ResearchRequest, ResearchSnapshot
from agentic_search.services.reporting import to_sse_event

from conftest import FakeFetcher, ScriptedOracle


@pytest.fixture
def client():
    yield TestClient(app)
    app.dependency_overrides.clear()


def override_orchestrator(oracle: ScriptedOracle) -> None:
    app.dependency_overrides[get_orchestrator] = lambda: ResearchOrchestrator(
        oracle=oracle,
        fetcher=FakeFetcher(),
        selector=SourceSelector.default(),
    )


def test_health(client):
    response = client.get("/api/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["service"] == "agentic-search"


def test_research_returns_result(client):
    override_orchestrator(ScriptedOracle())

    response = client.post("/api/research", json={"query": "What is Firecrawl?", "limit": 3})

    assert response.status_code == 200
    data = response.json()
    assert data["answered"] is True
    assert data["stop_reason"] == "threshold_reached"
    assert len(data["iterations"]) == 1
    assert len(data["sources"]) == 3


def test_research_rejects_empty_query(client):
    override_orchestrator(ScriptedOracle())

    response = client.post("/api/research", json={"query": ""})

    assert response.status_code == 422


def test_research_reports_unavailable_oracle(client):
    override_orchestrator(ScriptedOracle(plan=OracleUnavailable("no key", caller="plan")))

    response = client.post("/api/research", json={"query": "What is Firecrawl?"})

    assert response.status_code == 503
    assert "no key" in response.json()["detail"]


def test_article_fetch_failure_maps_to_bad_gateway(client):
    class FailingFetcher:
        async def fetch(self, url):
            return FetchFailure(url=url, error="HTTP 404")

    app.dependency_overrides[get_article_analyzer] = lambda: ArticleAnalyzer(
        oracle=ScriptedOracle(), fetcher=FailingFetcher()
    )

    response = client.post("/api/articles/analyze", json={"url": "https://example.com/a"})

    assert response.status_code == 502
    assert "HTTP 404" in response.json()["detail"]


def test_article_rejects_invalid_url(client):
    app.dependency_overrides[get_article_analyzer] = lambda: ArticleAnalyzer(
        oracle=ScriptedOracle(), fetcher=FakeFetcher()
    )

    response = client.post("/api/articles/analyze", json={"url": "ftp://example.com"})

    assert response.status_code == 422


def test_snapshot_maps_to_sse_event():
    snapshot = ResearchSnapshot(
        phase=Phase.SEARCHING,
        request=ResearchRequest(query="tides").query,
        iterations=[],
        is_searching=True,
    )

    event = to_sse_event(snapshot)

    assert event["event"] == "searching"
    payload = json.loads(event["data"])
    assert payload["phase"] == "searching"
    assert payload["is_searching"] is True
