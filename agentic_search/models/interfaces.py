from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol, Union


@dataclass(slots=True)
class FetchedPage:
    url: str
    content: str
    title: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(slots=True)
class FetchFailure:
    url: str
    error: str


FetchResult = Union[FetchedPage, FetchFailure]


class ContentFetcher(Protocol):
    """Retrieves the extracted text of a page.

    Ordinary network and parsing failures are returned as ``FetchFailure``
    values, never raised.
    """

    async def fetch(self, url: str) -> FetchResult: ...


class TextOracle(Protocol):
    """Text-in/text-out generation service.

    ``caller`` names the call site for logging (plan, extract, assess, ...).
    Raises ``OracleUnavailable`` when the service cannot be reached.
    """

    async def generate(self, prompt: str, *, caller: str) -> str: ...
