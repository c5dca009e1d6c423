from __future__ import annotations

import inspect
from typing import Any, Callable, Optional, TextIO

from loguru import logger

from agentic_search.models.research import Phase, ResearchSnapshot

ProgressReporter = Callable[[ResearchSnapshot], Any]


async def deliver(reporter: Optional[ProgressReporter], snapshot: ResearchSnapshot) -> None:
    """Hand a snapshot to the reporter; reporter failures are logged and dropped."""
    if reporter is None:
        return
    try:
        outcome = reporter(snapshot)
        if inspect.isawaitable(outcome):
            await outcome
    except Exception as exc:
        logger.warning(f"Progress reporter failed on phase {snapshot.phase.value}: {exc}")


def to_sse_event(snapshot: ResearchSnapshot) -> dict[str, str]:
    """Map a snapshot onto an sse-starlette event payload."""
    return {
        "event": snapshot.phase.value,
        "data": snapshot.model_dump_json(),
    }


class ConsoleReporter:
    """Prints a line per phase transition for terminal use."""

    def __init__(self, stream: TextIO | None = None):
        self.stream = stream

    def _print(self, text: str = "", **kwargs: Any) -> None:
        print(text, file=self.stream, **kwargs)

    def __call__(self, snapshot: ResearchSnapshot) -> None:
        current = snapshot.iterations[-1] if snapshot.iterations else None
        number = len(snapshot.iterations)

        if snapshot.phase == Phase.PLAN and not snapshot.iterations:
            self._print("[*] Planning search query...")
        elif snapshot.phase == Phase.SEARCHING and current is not None:
            self._print(f"\n[~] Search #{number}: \"{current.query}\"")
        elif snapshot.phase == Phase.SCRAPING and current is not None:
            self._print(f"  Found {len(current.sources)} sources, fetching...")
        elif snapshot.phase == Phase.SUMMARIZING and current is not None:
            fetched = sum(1 for s in current.sources if s.fetched)
            self._print(f"  [+] Fetched {fetched}/{len(current.sources)} sources")
        elif snapshot.phase == Phase.ASSESSING and current is not None:
            for point in current.bullet_points:
                self._print(f"    • {point}")
        elif snapshot.phase == Phase.PLAN and current is not None:
            self._print(f"  Confidence: {current.confidence}% {current.reasoning}".rstrip())
        elif snapshot.phase == Phase.DONE:
            sources = snapshot.all_sources or []
            fetched = sum(1 for s in sources if s.fetched)
            self._print(f"\n[*] Research complete ({number} iterations, {fetched} sources analyzed)")
