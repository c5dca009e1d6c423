"""Best-effort decoding of structured fields out of free-text oracle replies.

Every helper returns an explicit default when the reply does not match; none
of them raise on malformed input.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

BULLET_MARKERS = ("•", "-", "*")
# Marker must be followed by whitespace: "**bold**" and "---" are not bullets.
_BULLET_RE = re.compile(
    rf"^\s*[{''.join(re.escape(m) for m in BULLET_MARKERS)}]\s+(.+)"
)
NO_QUERY = "none"


def _label(name: str) -> str:
    # QUERY must not match inside NEXT_QUERY.
    return rf"(?<!\w){re.escape(name)}:"


def extract_field(text: str, name: str) -> str | None:
    """Return the value after ``NAME:`` (same or next line), or None."""
    if not text:
        return None
    match = re.search(rf"{_label(name)}\s*(.+)", text, flags=re.IGNORECASE)
    if not match:
        return None
    # Markdown emphasis around the label leaves stray asterisks behind.
    value = match.group(1).strip().strip("*").strip()
    return value or None


def extract_int_field(
    text: str,
    name: str,
    *,
    default: int,
    minimum: int = 0,
    maximum: int = 100,
) -> int:
    if not text:
        return default
    match = re.search(rf"{_label(name)}\W*(\d+)", text, flags=re.IGNORECASE)
    if not match:
        return default
    return max(minimum, min(int(match.group(1)), maximum))


def extract_section(text: str, name: str, *, until: str | None = None) -> str | None:
    """Return the block after ``NAME:``, stopping at ``UNTIL:`` when given."""
    if not text:
        return None
    stop = rf"(?={_label(until)}|$)" if until else "$"
    match = re.search(
        rf"{_label(name)}\s*(.*?){stop}",
        text,
        flags=re.IGNORECASE | re.DOTALL,
    )
    if not match:
        return None
    return match.group(1).strip() or None


def extract_bullets(text: str, *, limit: int | None = None) -> list[str]:
    bullets: list[str] = []
    for line in (text or "").splitlines():
        match = _BULLET_RE.match(line)
        if not match:
            continue
        point = match.group(1).strip()
        if not point:
            continue
        bullets.append(point)
        if limit is not None and len(bullets) >= limit:
            break
    return bullets


def _strip_quotes(value: str) -> str:
    return value.strip().strip("\"'`").strip()


@dataclass
class QueryPlan:
    query: str
    topics: list[str] = field(default_factory=list)
    info_type: str = ""
    from_fallback: bool = False


@dataclass
class ConfidenceAssessment:
    confidence: int = 50
    reasoning: str = ""
    next_query: str | None = None


def parse_query_plan(text: str, fallback_query: str) -> QueryPlan:
    query = extract_field(text, "QUERY")
    topics_raw = extract_field(text, "TOPICS") or ""
    topics = [t.strip() for t in topics_raw.split(",") if t.strip()]
    info_type = (extract_field(text, "TYPE") or "").lower()
    if query:
        query = _strip_quotes(query)
    if not query:
        return QueryPlan(
            query=fallback_query,
            topics=topics,
            info_type=info_type,
            from_fallback=True,
        )
    return QueryPlan(query=query, topics=topics, info_type=info_type)


def parse_assessment(text: str) -> ConfidenceAssessment:
    next_query = extract_field(text, "NEXT_QUERY")
    if next_query:
        next_query = _strip_quotes(next_query)
        if not next_query or next_query.lower() == NO_QUERY:
            next_query = None
    return ConfidenceAssessment(
        confidence=extract_int_field(text, "CONFIDENCE", default=50),
        reasoning=extract_field(text, "REASONING") or "",
        next_query=next_query,
    )
