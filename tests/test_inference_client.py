from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from conftest import PHOENIX_TEXT
from summarize_mate.summaries.inference_client import (
    AuthenticationError,
    EmptyResultError,
    InferenceHTTPError,
    InferenceTimeout,
    InferenceTransportError,
    ObjectShape,
    RemoteSummarizationClient,
    SequenceShape,
    UnexpectedResponseShapeError,
    classify_response,
    extract_summary_text,
    primary_parameters,
)


def _run_primary(handler, text=PHOENIX_TEXT, **kwargs):
    async def scenario():
        client = RemoteSummarizationClient("hf_test", transport=httpx.MockTransport(handler), **kwargs)
        async with client:
            return await client.summarize_primary(text)

    return asyncio.run(scenario())


def _run_secondary(handler, text=PHOENIX_TEXT, **kwargs):
    async def scenario():
        client = RemoteSummarizationClient("hf_test", transport=httpx.MockTransport(handler), **kwargs)
        async with client:
            return await client.summarize_secondary(text)

    return asyncio.run(scenario())


def test_requires_api_key():
    with pytest.raises(AuthenticationError):
        RemoteSummarizationClient("")


def test_primary_request_payload_and_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["Authorization"]
        seen["content_type"] = request.headers["Content-Type"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[{"summary_text": "  Phoenix launches in spring.  "}])

    result = _run_primary(handler, text="  The Project   Phoenix launch is\n scheduled for next spring across all regions. ")

    assert result.text == "Phoenix launches in spring."
    assert result.model == "facebook/bart-large-cnn"
    assert seen["url"] == "https://api-inference.huggingface.co/models/facebook/bart-large-cnn"
    assert seen["auth"] == "Bearer hf_test"
    assert seen["content_type"] == "application/json"
    assert seen["body"] == {
        "inputs": PHOENIX_TEXT,
        "parameters": {"max_length": 3, "min_length": 30, "do_sample": False, "early_stopping": True},
        "options": {"wait_for_model": True},
    }


def test_secondary_request_has_no_generation_parameters():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"generated_text": "Spring launch."})

    result = _run_secondary(handler)

    assert result.text == "Spring launch."
    assert seen["path"] == "/models/sshleifer/distilbart-cnn-12-6"
    assert seen["body"] == {"inputs": PHOENIX_TEXT, "options": {"wait_for_model": True}}


@pytest.mark.parametrize(
    "words, expected",
    [
        (12, {"max_length": 3, "min_length": 30}),
        (400, {"max_length": 120, "min_length": 40}),
        (1000, {"max_length": 150, "min_length": 100}),
    ],
)
def test_primary_parameters(words, expected):
    params = primary_parameters(words)
    assert {key: params[key] for key in expected} == expected


def test_non_success_status_raises_http_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(400, text="input too short")

    with pytest.raises(InferenceHTTPError) as excinfo:
        _run_primary(handler)
    assert excinfo.value.status == 400
    assert excinfo.value.body == "input too short"


def test_slow_response_times_out():
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(1)
        return httpx.Response(200, json=[{"summary_text": "late"}])

    with pytest.raises(InferenceTimeout):
        _run_primary(handler, primary_timeout=0.05)


def test_network_failure_raises_transport_error():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(InferenceTransportError):
        _run_secondary(handler)


def test_non_json_body_is_unexpected_shape():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>loading</html>")

    with pytest.raises(UnexpectedResponseShapeError):
        _run_primary(handler)


def test_blank_summary_raises_empty_result():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=[{"summary_text": "   "}])

    with pytest.raises(EmptyResultError):
        _run_primary(handler)


def test_classify_response_shapes():
    assert isinstance(classify_response([{"summary_text": "x"}]), SequenceShape)
    assert isinstance(classify_response({"summary_text": "x"}), ObjectShape)
    for bad in ([], ["text"], "text", 42, None):
        with pytest.raises(UnexpectedResponseShapeError):
            classify_response(bad)


def test_summary_text_takes_priority_over_generated_text():
    assert extract_summary_text([{"generated_text": "second", "summary_text": "first"}]) == "first"
    assert extract_summary_text({"summary_text": "", "generated_text": "fallback"}) == "fallback"


def test_whitespace_summary_text_does_not_defer_to_generated_text():
    with pytest.raises(EmptyResultError):
        extract_summary_text([{"summary_text": "   ", "generated_text": "fallback"}])
    assert extract_summary_text({"summary_text": "  padded  "}) == "padded"


def test_missing_text_fields_is_unexpected_shape():
    with pytest.raises(UnexpectedResponseShapeError):
        extract_summary_text({"error": "Model is loading"})
