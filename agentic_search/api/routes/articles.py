from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from agentic_search.agents.article_analyzer import ArticleAnalysis, ArticleAnalyzer
from agentic_search.api.deps import get_article_analyzer
from agentic_search.models.errors import ArticleFetchError, OracleUnavailable
from agentic_search.models.schemas import ArticleRequest
from agentic_search.tools import web_utils

router = APIRouter(prefix="/api/articles", tags=["articles"])


@router.post("/analyze", response_model=ArticleAnalysis)
async def analyze_article(
    body: ArticleRequest,
    analyzer: ArticleAnalyzer = Depends(get_article_analyzer),
):
    if not web_utils.is_valid_url(body.url):
        raise HTTPException(status_code=422, detail=f"Invalid URL: {body.url}")
    try:
        return await analyzer.analyze(body.url)
    except ArticleFetchError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except OracleUnavailable as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc
