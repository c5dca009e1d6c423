from __future__ import annotations

import asyncio
import time
from typing import AsyncGenerator
from uuid import uuid4

from loguru import logger

from agentic_search.agents.source_selector import SourceSelector
from agentic_search.config import settings
from agentic_search.llm_client import oracle as default_oracle
from agentic_search.models.errors import OracleUnavailable
from agentic_search.models.interfaces import ContentFetcher, FetchedPage, FetchFailure, TextOracle
from agentic_search.models.research import (
    Iteration,
    Phase,
    ResearchRequest,
    ResearchResult,
    ResearchSnapshot,
    ResearchState,
    Source,
    StopReason,
)
from agentic_search.services import logger as log_service
from agentic_search.services import reply_parser
from agentic_search.services.prompt_store import render_prompt
from agentic_search.services.reporting import ProgressReporter, deliver
from agentic_search.tools.firecrawl_scraper import FirecrawlFetcher


class ResearchCancelled(Exception):
    """Internal signal: the run's cancel event or deadline fired."""


class ResearchOrchestrator:
    """Drives the iterative research loop.

    Flow:
      1. Ask the oracle to turn the request into a short search query
      2. Per iteration: select candidate sources, fetch them in parallel,
         extract findings, assess confidence and maybe refine the query
      3. Stop once confidence clears the threshold, the iteration budget is
         spent, candidates run out or no refined query is proposed
      4. Synthesize a final answer from every finding collected

    `iterate` yields an immutable snapshot after each phase; `run` forwards
    those snapshots to the reporter and returns the final result.
    """

    def __init__(
        self,
        *,
        oracle: TextOracle | None = None,
        fetcher: ContentFetcher | None = None,
        selector: SourceSelector | None = None,
        reporter: ProgressReporter | None = None,
        findings_per_iteration: int | None = None,
        content_prefix_chars: int | None = None,
    ):
        self.oracle = oracle or default_oracle()
        self.fetcher = fetcher or FirecrawlFetcher.from_settings()
        self.selector = selector or SourceSelector.default()
        self.reporter = reporter
        self.findings_per_iteration = max(
            int(findings_per_iteration or settings.research_findings_per_iteration), 1
        )
        self.content_prefix_chars = max(
            int(content_prefix_chars or settings.research_content_prefix_chars), 1
        )

    @staticmethod
    def build_request(
        text: str,
        *,
        limit: int | None = None,
        max_iterations: int | None = None,
        confidence_threshold: int | None = None,
    ) -> ResearchRequest:
        return ResearchRequest(
            query=text,
            limit=limit if limit is not None else settings.research_source_limit,
            max_iterations=(
                max_iterations
                if max_iterations is not None
                else settings.research_max_iterations
            ),
            confidence_threshold=(
                confidence_threshold
                if confidence_threshold is not None
                else settings.research_confidence_threshold
            ),
        )

    async def research(
        self,
        text: str,
        *,
        limit: int | None = None,
        max_iterations: int | None = None,
        confidence_threshold: int | None = None,
    ) -> ResearchResult:
        request = self.build_request(
            text,
            limit=limit,
            max_iterations=max_iterations,
            confidence_threshold=confidence_threshold,
        )
        return await self.run(request)

    async def run(
        self,
        request: ResearchRequest,
        *,
        cancel_event: asyncio.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> ResearchResult:
        result: ResearchResult | None = None
        async for snapshot in self.iterate(
            request,
            cancel_event=cancel_event,
            deadline_seconds=deadline_seconds,
        ):
            await deliver(self.reporter, snapshot)
            if snapshot.result is not None:
                result = snapshot.result
        if result is None:
            raise RuntimeError("Research loop ended without a result")
        return result

    async def iterate(
        self,
        request: ResearchRequest,
        *,
        cancel_event: asyncio.Event | None = None,
        deadline_seconds: float | None = None,
    ) -> AsyncGenerator[ResearchSnapshot, None]:
        run_id = uuid4().hex[:12]
        if deadline_seconds is None:
            deadline_seconds = settings.research_deadline_seconds
        state = ResearchState(
            request=request,
            current_query=request.query,
            cancel_event=cancel_event,
            deadline=time.monotonic() + deadline_seconds if deadline_seconds > 0 else None,
        )
        started = time.monotonic()
        logger.info(f"Starting research run {run_id} for query: {request.query[:100]}")

        stop_reason: StopReason | None = None
        try:
            await self._plan(state, run_id)
        except ResearchCancelled:
            stop_reason = StopReason.CANCELLED
        else:
            yield state.snapshot(Phase.PLAN)

        index = 0
        while (
            stop_reason is None
            and index < request.max_iterations
            and not state.threshold_reached
        ):
            if state.should_stop():
                stop_reason = StopReason.CANCELLED
                break

            iteration = Iteration(query=state.current_query)
            log_service.log_research_step(
                run_id, "iteration", "started", {"index": index, "query": iteration.query}
            )
            yield state.snapshot(Phase.SEARCHING, current=iteration)

            try:
                iteration.sources = self.selector.select(
                    state.current_query, index, request.limit
                )
                if not iteration.sources:
                    logger.info(f"No more candidate sources for '{state.current_query}'")
                    stop_reason = StopReason.NO_CANDIDATES
                    break
                yield state.snapshot(Phase.SCRAPING, current=iteration)

                pages = await self._fetch_sources(iteration.sources)
                state.sources.extend(iteration.sources)
                yield state.snapshot(Phase.SUMMARIZING, current=iteration)

                iteration.bullet_points = await self._extract_findings(state, pages)
                yield state.snapshot(Phase.ASSESSING, current=iteration)

                assessment = await self._assess(state, iteration)
            except ResearchCancelled:
                stop_reason = StopReason.CANCELLED
                break
            except OracleUnavailable:
                raise
            except Exception as exc:
                logger.exception(f"Research iteration {index + 1} failed: {exc}")
                log_service.log_research_step(
                    run_id, "iteration", "failed", {"index": index, "error": str(exc)}
                )
                stop_reason = StopReason.ITERATION_FAILED
                break

            iteration.confidence = assessment.confidence
            iteration.reasoning = assessment.reasoning
            state.record_confidence(assessment.confidence)
            state.iterations.append(iteration)
            index += 1
            log_service.log_research_step(
                run_id,
                "iteration",
                "completed",
                {
                    "index": index - 1,
                    "fetched": sum(1 for s in iteration.sources if s.fetched),
                    "findings": len(iteration.bullet_points),
                    "confidence": iteration.confidence,
                    "running_confidence": state.running_max_confidence,
                },
            )

            will_continue = (
                assessment.next_query is not None
                and not state.threshold_reached
                and index < request.max_iterations
            )
            yield state.snapshot(Phase.PLAN, is_searching=will_continue)

            if state.threshold_reached:
                stop_reason = StopReason.THRESHOLD_REACHED
                break
            if assessment.next_query is None:
                stop_reason = StopReason.NO_REFINEMENT
                break
            state.current_query = assessment.next_query

        if stop_reason is None:
            stop_reason = (
                StopReason.THRESHOLD_REACHED
                if state.threshold_reached
                else StopReason.BUDGET_EXHAUSTED
            )

        result = await self._finalize(state, stop_reason)
        runtime_ms = int((time.monotonic() - started) * 1000)
        logger.info(
            f"Research run {run_id} finished: answered={result.answered}, "
            f"stop_reason={result.stop_reason.value}, iterations={len(result.iterations)}, "
            f"sources={len(result.sources)}, runtime={runtime_ms}ms"
        )
        yield state.snapshot(
            Phase.DONE,
            is_searching=False,
            final_summary=result.final_summary if result.answered else None,
            result=result,
        )

    def _ensure_running(self, state: ResearchState) -> None:
        if state.should_stop():
            raise ResearchCancelled()

    async def _plan(self, state: ResearchState, run_id: str) -> None:
        self._ensure_running(state)
        reply = await self.oracle.generate(
            render_prompt("oracle.plan", request=state.request.query),
            caller="plan",
        )
        plan = reply_parser.parse_query_plan(reply, fallback_query=state.request.query)
        if plan.from_fallback:
            logger.warning("Query plan reply had no QUERY field; using the raw request")
        state.current_query = plan.query
        state.planned_query = plan.query
        state.topics = plan.topics
        state.info_type = plan.info_type
        log_service.log_research_step(
            run_id,
            "plan",
            "completed",
            {"query": plan.query, "topics": plan.topics, "type": plan.info_type},
        )

    async def _fetch_sources(self, sources: list[Source]) -> list[FetchedPage]:
        """Fetch every source concurrently; returns pages with content, in source order."""
        outcomes = await asyncio.gather(
            *(self.fetcher.fetch(source.url) for source in sources),
            return_exceptions=True,
        )
        pages: list[FetchedPage] = []
        for source, outcome in zip(sources, outcomes):
            if isinstance(outcome, FetchedPage):
                source.record_fetch(True, outcome.title)
                if outcome.content.strip():
                    pages.append(outcome)
                continue
            reason = outcome.error if isinstance(outcome, FetchFailure) else repr(outcome)
            logger.warning(f"Failed to fetch {source.url}: {reason}")
            source.record_fetch(False)
        return pages

    async def _extract_findings(
        self, state: ResearchState, pages: list[FetchedPage]
    ) -> list[str]:
        if not pages:
            return []
        self._ensure_running(state)
        combined = "\n\n".join(
            f"Source: {page.title}\n{page.content[: self.content_prefix_chars]}\n---"
            for page in pages
        )
        reply = await self.oracle.generate(
            render_prompt(
                "oracle.extract",
                request=state.request.query,
                count=self.findings_per_iteration,
                content=combined,
            ),
            caller="extract",
        )
        return reply_parser.extract_bullets(reply, limit=self.findings_per_iteration)

    async def _assess(
        self, state: ResearchState, iteration: Iteration
    ) -> reply_parser.ConfidenceAssessment:
        self._ensure_running(state)
        reply = await self.oracle.generate(
            render_prompt(
                "oracle.assess",
                request=state.request.query,
                findings="\n".join(iteration.bullet_points),
                threshold=state.request.confidence_threshold,
            ),
            caller="assess",
        )
        return reply_parser.parse_assessment(reply)

    async def _finalize(self, state: ResearchState, stop_reason: StopReason) -> ResearchResult:
        findings = state.all_findings()
        if not findings:
            return self._result(
                state,
                answered=False,
                summary=render_prompt("messages.not_found"),
                stop_reason=stop_reason,
            )
        if state.should_stop():
            return self._result(
                state,
                answered=False,
                summary=render_prompt("messages.cancelled"),
                stop_reason=StopReason.CANCELLED,
            )

        numbered = "\n".join(f"{i}. {point}" for i, point in enumerate(findings, 1))
        reply = await self.oracle.generate(
            render_prompt("oracle.synthesize", request=state.request.query, findings=numbered),
            caller="synthesize",
        )
        return self._result(
            state,
            answered=True,
            summary=reply.strip() or numbered,
            stop_reason=stop_reason,
        )

    @staticmethod
    def _result(
        state: ResearchState,
        *,
        answered: bool,
        summary: str,
        stop_reason: StopReason,
    ) -> ResearchResult:
        return ResearchResult(
            answered=answered,
            final_summary=summary,
            iterations=[it.model_copy(deep=True) for it in state.iterations],
            sources=[s.model_copy(deep=True) for s in state.sources],
            query=state.planned_query or state.request.query,
            confidence=state.running_max_confidence,
            stop_reason=stop_reason,
        )
