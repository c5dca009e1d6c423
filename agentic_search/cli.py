"""Agentic Search - iterative web research

Simple CLI for running research queries and single-article analysis.
"""

import argparse
import asyncio
import sys

from pydantic import ValidationError

from agentic_search.agents.article_analyzer import ArticleAnalyzer
from agentic_search.agents.orchestrator import ResearchOrchestrator
from agentic_search.models.errors import ResearchError
from agentic_search.services.logger import configure_logging
from agentic_search.services.reporting import ConsoleReporter


async def run_research(
    query: str,
    *,
    limit: int | None = None,
    max_iterations: int | None = None,
    threshold: int | None = None,
) -> int:
    """Run research on the given query."""
    print(f"Research request: {query}")
    print("-" * 50)

    orchestrator = ResearchOrchestrator(reporter=ConsoleReporter())
    result = await orchestrator.research(
        query,
        limit=limit,
        max_iterations=max_iterations,
        confidence_threshold=threshold,
    )

    print(f"\n{'=' * 50}")
    print("ANSWER:" if result.answered else "NO ANSWER:")
    print(f"{'=' * 50}")
    print(result.final_summary)
    print(f"\nConfidence: {result.confidence}% (stopped: {result.stop_reason.value})")
    print("Sources:")
    for source in result.sources:
        marker = "+" if source.fetched else "-"
        print(f"  [{marker}] {source.title} <{source.url}>")
    return 0 if result.answered else 2


async def run_analysis(url: str) -> int:
    analysis = await ArticleAnalyzer().analyze(url)
    print(f"{analysis.title}\n{analysis.url}")
    print(f"{analysis.word_count} words, ~{analysis.reading_time_minutes} min read\n")
    print(analysis.summary)
    if analysis.key_points:
        print("\nKey points:")
        for point in analysis.key_points:
            print(f"  • {point}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Agentic Search research tool")
    target = parser.add_mutually_exclusive_group(required=True)
    target.add_argument("--query", "-q", help="Research request")
    target.add_argument("--analyze", "-a", metavar="URL", help="Summarize a single article")
    parser.add_argument("--limit", type=int, help="Sources per iteration")
    parser.add_argument("--max-iterations", type=int, help="Iteration budget")
    parser.add_argument("--threshold", type=int, help="Confidence threshold (0-100)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging on the console")

    args = parser.parse_args(argv)
    if args.verbose:
        configure_logging("DEBUG")

    try:
        if args.analyze:
            return asyncio.run(run_analysis(args.analyze))
        return asyncio.run(
            run_research(
                args.query,
                limit=args.limit,
                max_iterations=args.max_iterations,
                threshold=args.threshold,
            )
        )
    except ValidationError as exc:
        parser.error(str(exc))
    except ResearchError as exc:
        print(f"\n[!] Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
