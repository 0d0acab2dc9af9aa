"""Tests for the OpenAI-compatible completion client."""

import json

import httpx
import pytest

from tutor.llm.client import CompletionClient, CompletionResult
from tutor.utils.exceptions import CompletionError, ConfigurationError

from conftest import SAMPLE_COMPLETION


def _client(settings, handler):
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CompletionClient(settings, http=http)


MESSAGES = [{"role": "system", "content": "S"}, {"role": "user", "content": "Hello"}]


@pytest.mark.asyncio
async def test_posts_conversation_with_trace_header(settings):
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=SAMPLE_COMPLETION)

    client = _client(settings, handler)
    result = await client.create(
        MESSAGES, model="gpt-4o-mini", model_parameters={"temperature": 0.7}, trace_id="trace-42"
    )

    assert seen["url"] == "https://llm.test/v1/chat/completions"
    assert seen["headers"]["authorization"] == "Bearer test-key"
    assert seen["headers"]["maxim-trace-id"] == "trace-42"
    assert seen["body"] == {"model": "gpt-4o-mini", "messages": MESSAGES, "temperature": 0.7}

    assert isinstance(result, CompletionResult)
    assert result.raw == SAMPLE_COMPLETION
    assert result.text == "Bonjour ! Comment ça va ?"
    assert result.usage.total_tokens == 129


@pytest.mark.asyncio
async def test_missing_usage_defaults_to_zero(settings):
    body = {k: v for k, v in SAMPLE_COMPLETION.items() if k != "usage"}
    client = _client(settings, lambda request: httpx.Response(200, json=body))

    result = await client.create(MESSAGES)

    assert result.usage.as_dict() == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}


@pytest.mark.asyncio
async def test_http_error_becomes_completion_error(settings):
    def handler(request):
        return httpx.Response(500, json={"error": {"message": "secret provider detail"}})

    client = _client(settings, handler)
    with pytest.raises(CompletionError) as exc_info:
        await client.create(MESSAGES)

    assert exc_info.value.status_code == 500
    assert "secret provider detail" not in str(exc_info.value)


@pytest.mark.asyncio
async def test_network_error_becomes_completion_error(settings):
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(settings, handler)
    with pytest.raises(CompletionError):
        await client.create(MESSAGES)


@pytest.mark.asyncio
async def test_response_without_choices_is_rejected(settings):
    client = _client(settings, lambda request: httpx.Response(200, json={"id": "x"}))
    with pytest.raises(CompletionError):
        await client.create(MESSAGES)


@pytest.mark.asyncio
async def test_missing_api_key(settings):
    settings.api_key = ""
    client = _client(settings, lambda request: httpx.Response(200, json=SAMPLE_COMPLETION))
    with pytest.raises(ConfigurationError):
        await client.create(MESSAGES)
