"""OpenRouter-backed text oracle via the OpenAI-compatible SDK."""
from __future__ import annotations

import asyncio
import time
from typing import Any

import openai

from agentic_search.config import settings
from agentic_search.models.errors import OracleUnavailable
from agentic_search.services import logger as log_service


def get_client() -> Any:
    """Get an OpenRouter client via the OpenAI-compatible SDK."""
    from openai import AsyncOpenAI

    if not settings.openrouter_api_key:
        raise OracleUnavailable("OPENROUTER_API_KEY not configured")
    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    return AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
    )


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


def _temperature_for_model(model: str) -> int:
    # Some OpenAI GPT-5-compatible gateways reject temperature=0.
    if "gpt-5" in (model or "").lower():
        return 1
    return 0


class OpenRouterOracle:
    """Single-prompt chat completion with a bounded timeout.

    Transport and API failures are raised as ``OracleUnavailable``.
    """

    def __init__(
        self,
        model: str | None = None,
        *,
        client: Any | None = None,
        timeout_seconds: float | None = None,
        max_tokens: int | None = None,
    ):
        self.model = model or get_model()
        self._client = client
        self.timeout_seconds = float(timeout_seconds or settings.oracle_timeout_seconds)
        self.max_tokens = int(max_tokens or settings.oracle_max_tokens)

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = get_client()
        return self._client

    async def generate(self, prompt: str, *, caller: str) -> str:
        t0 = time.monotonic()
        try:
            response = await asyncio.wait_for(
                self.client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": prompt}],
                    max_tokens=self.max_tokens,
                    temperature=_temperature_for_model(self.model),
                ),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            self._log(caller, None, t0, error="timeout")
            raise OracleUnavailable(
                f"Oracle call '{caller}' timed out after {self.timeout_seconds:.0f}s",
                caller=caller,
            ) from exc
        except openai.APIError as exc:
            self._log(caller, None, t0, error=str(exc))
            raise OracleUnavailable(
                f"Oracle call '{caller}' failed: {exc}", caller=caller
            ) from exc

        self._log(caller, response, t0)
        return self._extract_text(response)

    @staticmethod
    def _extract_text(response: Any) -> str:
        choices = getattr(response, "choices", None) or []
        if not choices:
            return ""
        message = getattr(choices[0], "message", None)
        text = getattr(message, "content", None)
        return text.strip() if isinstance(text, str) else ""

    def _log(self, caller: str, response: Any, t0: float, error: str | None = None) -> None:
        usage = getattr(response, "usage", None)
        log_service.log_llm_call(
            model=self.model,
            caller=caller,
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            duration_ms=int((time.monotonic() - t0) * 1000),
            status="error" if error else "success",
            error=error,
        )


_oracle: OpenRouterOracle | None = None


def oracle() -> OpenRouterOracle:
    """Get or create the shared oracle."""
    global _oracle
    if _oracle is None:
        _oracle = OpenRouterOracle()
    return _oracle
