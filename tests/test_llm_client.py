from __future__ import annotations

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from agentic_search import llm_client
from agentic_search.models.errors import OracleUnavailable


def make_response(text: str):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text))],
        usage=SimpleNamespace(prompt_tokens=12, completion_tokens=5),
    )


def make_client(create) -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = create
    return client


@pytest.mark.asyncio
async def test_generate_returns_stripped_text():
    create = AsyncMock(return_value=make_response("  QUERY: tides  \n"))
    oracle = llm_client.OpenRouterOracle("openai/gpt-4o-mini", client=make_client(create))

    text = await oracle.generate("plan this", caller="plan")

    assert text == "QUERY: tides"
    kwargs = create.await_args.kwargs
    assert kwargs["model"] == "openai/gpt-4o-mini"
    assert kwargs["messages"] == [{"role": "user", "content": "plan this"}]
    assert kwargs["temperature"] == 0


@pytest.mark.asyncio
async def test_empty_choices_yield_empty_text():
    create = AsyncMock(return_value=SimpleNamespace(choices=[], usage=None))
    oracle = llm_client.OpenRouterOracle("m", client=make_client(create))

    assert await oracle.generate("x", caller="extract") == ""


@pytest.mark.asyncio
async def test_api_error_becomes_oracle_unavailable():
    request = httpx.Request("POST", "https://openrouter.ai/api/v1/chat/completions")
    create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
    oracle = llm_client.OpenRouterOracle("m", client=make_client(create))

    with pytest.raises(OracleUnavailable) as excinfo:
        await oracle.generate("x", caller="assess")
    assert excinfo.value.caller == "assess"


@pytest.mark.asyncio
async def test_slow_call_times_out_as_oracle_unavailable():
    async def slow(**_kwargs):
        await asyncio.sleep(5)

    oracle = llm_client.OpenRouterOracle("m", client=make_client(slow), timeout_seconds=0.05)

    with pytest.raises(OracleUnavailable, match="timed out"):
        await oracle.generate("x", caller="synthesize")


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.setattr(llm_client.settings, "openrouter_api_key", "")
    with pytest.raises(OracleUnavailable):
        llm_client.get_client()


def test_model_override_takes_precedence(monkeypatch):
    monkeypatch.setattr(llm_client.settings, "openrouter_model", "anthropic/claude-3.5-sonnet")
    assert llm_client.get_model() == "anthropic/claude-3.5-sonnet"
    monkeypatch.setattr(llm_client.settings, "openrouter_model", "")
    assert llm_client.get_model() == llm_client.settings.default_model


def test_gpt5_models_use_nonzero_temperature():
    assert llm_client._temperature_for_model("openai/gpt-5-mini") == 1
    assert llm_client._temperature_for_model("openai/gpt-4o") == 0
