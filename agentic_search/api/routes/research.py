from __future__ import annotations

import json

from fastapi import APIRouter, Depends, HTTPException
from loguru import logger
from sse_starlette.sse import EventSourceResponse

from agentic_search.agents.orchestrator import ResearchOrchestrator
from agentic_search.api.deps import get_orchestrator
from agentic_search.models.errors import OracleUnavailable
from agentic_search.models.research import ResearchRequest, ResearchResult
from agentic_search.models.schemas import ResearchQuery
from agentic_search.services import logger as log_service
from agentic_search.services.reporting import to_sse_event

router = APIRouter(prefix="/api/research", tags=["research"])


def _to_request(body: ResearchQuery) -> ResearchRequest:
    return ResearchOrchestrator.build_request(
        body.query,
        limit=body.limit,
        max_iterations=body.max_iterations,
        confidence_threshold=body.confidence_threshold,
    )


@router.post("", response_model=ResearchResult)
async def run_research(
    body: ResearchQuery,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    """Run the research loop to completion and return the result."""
    request = _to_request(body)
    log_service.log_event(
        event_type="research_started",
        message="Research started",
        query=request.query[:100],
        mode="blocking",
    )
    try:
        return await orchestrator.run(request)
    except OracleUnavailable as exc:
        logger.error(f"Research aborted, oracle unavailable: {exc}")
        raise HTTPException(status_code=503, detail=str(exc)) from exc


@router.post("/stream")
async def stream_research(
    body: ResearchQuery,
    orchestrator: ResearchOrchestrator = Depends(get_orchestrator),
):
    """SSE endpoint streaming a snapshot per research phase."""
    request = _to_request(body)

    async def event_generator():
        log_service.log_event(
            event_type="research_started",
            message="Research started",
            query=request.query[:100],
            mode="stream",
        )
        try:
            async for snapshot in orchestrator.iterate(request):
                yield to_sse_event(snapshot)
        except OracleUnavailable as exc:
            logger.error(f"Research stream aborted, oracle unavailable: {exc}")
            yield {"event": "error", "data": json.dumps({"message": str(exc)})}

    return EventSourceResponse(event_generator())
