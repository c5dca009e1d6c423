from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from agentic_search.tools import web_utils


class Phase(str, Enum):
    PLAN = "plan"
    SEARCHING = "searching"
    SCRAPING = "scraping"
    SUMMARIZING = "summarizing"
    ASSESSING = "assessing"
    DONE = "done"


class StopReason(str, Enum):
    THRESHOLD_REACHED = "threshold_reached"
    BUDGET_EXHAUSTED = "budget_exhausted"
    NO_CANDIDATES = "no_candidates"
    NO_REFINEMENT = "no_refinement"
    ITERATION_FAILED = "iteration_failed"
    CANCELLED = "cancelled"


class ResearchRequest(BaseModel):
    """Immutable input of one research run."""

    model_config = ConfigDict(frozen=True)

    query: str = Field(min_length=1)
    limit: int = Field(default=5, ge=1)  # sources per iteration
    max_iterations: int = Field(default=3, ge=1)
    confidence_threshold: int = Field(default=85, ge=0, le=100)


class Source(BaseModel):
    """A candidate URL and the outcome of fetching it."""

    url: str
    title: str
    fetched: bool = False
    _fetch_recorded: bool = PrivateAttr(default=False)

    @classmethod
    def from_url(cls, url: str) -> "Source":
        return cls(url=url, title=web_utils.display_title(url))

    @property
    def fetch_recorded(self) -> bool:
        return self._fetch_recorded

    def record_fetch(self, success: bool, title: str | None = None) -> None:
        if self._fetch_recorded:
            raise ValueError(f"Fetch outcome already recorded for {self.url}")
        self._fetch_recorded = True
        self.fetched = success
        if success and title:
            self.title = title


class Iteration(BaseModel):
    """One query -> fetch -> extract -> assess pass."""

    query: str
    sources: list[Source] = []
    bullet_points: list[str] = []
    confidence: int = 0  # 0-100
    reasoning: str = ""


class ResearchResult(BaseModel):
    answered: bool
    final_summary: str
    iterations: list[Iteration]
    sources: list[Source]
    query: str = ""  # planned query the loop started from
    confidence: int = 0  # running maximum over all iterations
    stop_reason: StopReason = StopReason.BUDGET_EXHAUSTED


class ResearchSnapshot(BaseModel):
    """Immutable view of a run, pushed to reporters after each phase."""

    model_config = ConfigDict(frozen=True)

    phase: Phase
    request: str
    iterations: list[Iteration]
    is_searching: bool
    confidence: int = 0
    final_summary: Optional[str] = None
    all_sources: Optional[list[Source]] = None
    result: Optional[ResearchResult] = None


@dataclass
class ResearchState:
    """Accumulating state of a run; owned by the orchestrator only."""

    request: ResearchRequest
    current_query: str
    planned_query: str = ""
    topics: list[str] = field(default_factory=list)
    info_type: str = ""
    iterations: list[Iteration] = field(default_factory=list)
    sources: list[Source] = field(default_factory=list)
    running_max_confidence: int = 0
    cancel_event: asyncio.Event | None = None
    deadline: float | None = None  # time.monotonic() value

    def record_confidence(self, score: int) -> None:
        self.running_max_confidence = max(self.running_max_confidence, score)

    @property
    def threshold_reached(self) -> bool:
        return self.running_max_confidence >= self.request.confidence_threshold

    def should_stop(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline

    def all_findings(self) -> list[str]:
        return [point for iteration in self.iterations for point in iteration.bullet_points]

    def snapshot(
        self,
        phase: Phase,
        *,
        is_searching: bool = True,
        current: Iteration | None = None,
        final_summary: str | None = None,
        result: ResearchResult | None = None,
    ) -> ResearchSnapshot:
        iterations = list(self.iterations)
        if current is not None:
            iterations.append(current)
        return ResearchSnapshot(
            phase=phase,
            request=self.request.query,
            iterations=[it.model_copy(deep=True) for it in iterations],
            is_searching=is_searching,
            confidence=self.running_max_confidence,
            final_summary=final_summary,
            all_sources=(
                [s.model_copy(deep=True) for s in self.sources]
                if phase == Phase.DONE
                else None
            ),
            result=result,
        )
