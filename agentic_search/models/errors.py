from __future__ import annotations


class ResearchError(Exception):
    """Base class for errors surfaced by the research package."""


class OracleUnavailable(ResearchError):
    """The text oracle could not be reached for a required call."""

    def __init__(self, message: str, *, caller: str = ""):
        super().__init__(message)
        self.caller = caller


class ArticleFetchError(ResearchError):
    """A single-article analysis could not retrieve the page."""

    def __init__(self, url: str, reason: str):
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason
