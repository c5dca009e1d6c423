from __future__ import annotations

from pydantic import BaseModel, Field


# --- Requests ---


class ResearchQuery(BaseModel):
    query: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1)
    max_iterations: int | None = Field(default=None, ge=1)
    confidence_threshold: int | None = Field(default=None, ge=0, le=100)


class ArticleRequest(BaseModel):
    url: str


# --- Responses ---


class HealthResponse(BaseModel):
    status: str
    service: str
