"""Tests for the review client against a mocked Messages API."""

import asyncio
import json
from typing import List

import httpx
import pytest

from src.core.review_config import ReviewActionSettings
from src.exceptions.review_exceptions import (
    AuthFailureException,
    InferenceException,
    InferenceTimeoutException,
    ResponseParseException,
)
from src.models.schemas.review import DiffPayload
from src.services.diff.diff_bounder import bound_diff
from src.services.llm.base_client import BaseLLMClient
from src.services.llm.claude_client import ClaudeClient, extract_error_message
from src.services.review.review_client import ReviewClient, extract_review_text

API_KEY = "sk-ant-test-key"
DIFF = "diff --git a/app.py b/app.py\n+print('hello')\n"


def ok_response(text: str = "## Summary\nLooks good.") -> httpx.Response:
    return httpx.Response(200, json={"content": [{"type": "text", "text": text}]})


class ScriptedTransport:
    """Serves queued responses and records every request."""

    def __init__(self, responses: List[httpx.Response]):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responses.pop(0)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


def make_review_client(settings, responses, sleep):
    scripted = ScriptedTransport(responses)
    claude = ClaudeClient(api_key=API_KEY, config=settings.inference, transport=scripted.transport)
    return ReviewClient(config=settings, llm_client=claude, sleep=sleep), scripted


class HangingClient(BaseLLMClient):
    """Never answers."""

    def __init__(self):
        super().__init__(api_key=API_KEY, api_url="http://unused")
        self.calls = 0

    async def send(self, request):
        self.calls += 1
        await asyncio.sleep(3600)


@pytest.mark.asyncio
async def test_request_shape_and_headers(fast_settings, recording_sleep):
    client, scripted = make_review_client(fast_settings, [ok_response()], recording_sleep)

    result = await client.review(bound_diff(DIFF), API_KEY)

    assert result.text == "## Summary\nLooks good."
    assert result.length == len(result.text.encode("utf-8"))

    request = scripted.requests[0]
    assert str(request.url) == "https://api.anthropic.com/v1/messages"
    assert request.headers["x-api-key"] == API_KEY
    assert request.headers["anthropic-version"] == "2023-06-01"
    assert request.headers["content-type"] == "application/json"

    body = json.loads(request.content)
    assert body["model"] == "claude-3-5-sonnet-20241022"
    assert body["max_tokens"] == 4096
    assert body["temperature"] == 0.7
    assert len(body["messages"]) == 1
    assert body["messages"][0]["role"] == "user"
    assert f"```\n{DIFF}\n```" in body["messages"][0]["content"]


@pytest.mark.asyncio
async def test_empty_payload_makes_no_request(fast_settings, recording_sleep):
    client, scripted = make_review_client(fast_settings, [], recording_sleep)

    assert await client.review(DiffPayload.empty(max_bytes=100_000), API_KEY) is None
    assert scripted.requests == []


@pytest.mark.asyncio
async def test_rate_limit_waits_for_retry_after(fast_settings, recording_sleep):
    client, scripted = make_review_client(
        fast_settings,
        [
            httpx.Response(429, headers={"retry-after": "5"}, json={"error": {"message": "rate limited"}}),
            ok_response("review"),
        ],
        recording_sleep,
    )

    result = await client.review(bound_diff(DIFF), API_KEY)

    assert result.text == "review"
    assert len(scripted.requests) == 2
    assert recording_sleep.calls == [5.0]


@pytest.mark.asyncio
async def test_invalid_key_fails_after_single_request(fast_settings, recording_sleep):
    client, scripted = make_review_client(
        fast_settings,
        [httpx.Response(401, json={"error": {"type": "authentication_error", "message": "invalid x-api-key"}})],
        recording_sleep,
    )

    with pytest.raises(InferenceException) as exc_info:
        await client.review(bound_diff(DIFF), API_KEY)

    assert len(scripted.requests) == 1
    assert recording_sleep.calls == []
    assert exc_info.value.status_code == 401
    assert isinstance(exc_info.value.cause, AuthFailureException)
    assert "API returned 401: invalid x-api-key" in str(exc_info.value)


@pytest.mark.asyncio
async def test_missing_content_is_not_retried(fast_settings, recording_sleep):
    client, scripted = make_review_client(
        fast_settings, [httpx.Response(200, json={"content": []})], recording_sleep
    )

    with pytest.raises(InferenceException) as exc_info:
        await client.review(bound_diff(DIFF), API_KEY)

    assert len(scripted.requests) == 1
    assert isinstance(exc_info.value.cause, ResponseParseException)


@pytest.mark.asyncio
async def test_server_errors_exhaust_inference_budget(recording_sleep):
    settings = ReviewActionSettings()
    client, scripted = make_review_client(
        settings, [httpx.Response(500, text="internal error") for _ in range(4)], recording_sleep
    )

    with pytest.raises(InferenceException) as exc_info:
        await client.review(bound_diff(DIFF), API_KEY)

    assert len(scripted.requests) == 4
    assert recording_sleep.calls == [2.0, 4.0, 8.0]
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_non_json_success_is_retried(fast_settings, recording_sleep):
    client, scripted = make_review_client(
        fast_settings,
        [httpx.Response(200, text="<html>gateway</html>"), ok_response("review")],
        recording_sleep,
    )

    result = await client.review(bound_diff(DIFF), API_KEY)

    assert result.text == "review"
    assert len(scripted.requests) == 2


@pytest.mark.asyncio
async def test_deadline_applies_to_each_attempt(short_deadline_settings, recording_sleep):
    hanging = HangingClient()
    client = ReviewClient(config=short_deadline_settings, llm_client=hanging, sleep=recording_sleep)

    with pytest.raises(InferenceException) as exc_info:
        await client.review(bound_diff(DIFF), API_KEY)

    assert hanging.calls == 4
    assert isinstance(exc_info.value.cause, InferenceTimeoutException)
    assert str(exc_info.value) == "Claude API request timed out after 0.02 seconds"


@pytest.mark.unit
def test_extract_review_text_requires_text():
    assert extract_review_text({"content": [{"text": "ok"}]}) == "ok"

    for data in ({}, {"content": []}, {"content": [{"text": ""}]}, {"content": [{"type": "image"}]}, None):
        with pytest.raises(ResponseParseException):
            extract_review_text(data)


@pytest.mark.unit
@pytest.mark.parametrize("response,expected", [
    (httpx.Response(400, json={"error": {"message": "bad request"}}), "bad request"),
    (httpx.Response(400, json={"message": "top level"}), "top level"),
    (httpx.Response(502, text="Bad Gateway"), "Bad Gateway"),
])
def test_extract_error_message(response, expected):
    assert extract_error_message(response) == expected


@pytest.mark.unit
def test_inference_client_interface_is_send_only():
    assert BaseLLMClient.__abstractmethods__ == frozenset({"send"})
