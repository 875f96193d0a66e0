"""Thin Hugging Face inference API wrapper used by the summarization service."""
from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

import httpx

from ..text_metrics import clean_text, word_count

DEFAULT_BASE_URL = "https://api-inference.huggingface.co/models"
DEFAULT_PRIMARY_MODEL = "facebook/bart-large-cnn"
DEFAULT_SECONDARY_MODEL = "sshleifer/distilbart-cnn-12-6"

_TEXT_FIELDS = ("summary_text", "generated_text")


class InferenceError(RuntimeError):
    """Base error raised for remote summarization failures."""


class AuthenticationError(InferenceError):
    """Raised when the API key is missing."""


class InferenceTimeout(InferenceError):
    """Raised when a request misses its deadline."""


class InferenceTransportError(InferenceError):
    """Raised when the request never produced an HTTP response."""


class InferenceHTTPError(InferenceError):
    """Raised for non-2xx responses."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Inference request failed ({status}): {body[:200]}")
        self.status = status
        self.body = body


class UnexpectedResponseShapeError(InferenceError):
    """Raised when the payload carries no recognizable summary field."""


class EmptyResultError(InferenceError):
    """Raised when the model answered with blank text."""


@dataclass(frozen=True)
class SequenceShape:
    """``[{"summary_text": ...}, ...]``, the usual pipeline response."""

    first: Mapping[str, Any]


@dataclass(frozen=True)
class ObjectShape:
    """``{"summary_text": ...}``, returned by some hosted models."""

    body: Mapping[str, Any]


ResponseShape = Union[SequenceShape, ObjectShape]


@dataclass
class InferenceResult:
    """Simplified view of a summarization response."""

    text: str
    model: str
    raw: Any


def classify_response(data: Any) -> ResponseShape:
    if isinstance(data, list):
        if data and isinstance(data[0], Mapping):
            return SequenceShape(first=data[0])
        raise UnexpectedResponseShapeError("Inference response list was empty or held no object")
    if isinstance(data, Mapping):
        return ObjectShape(body=data)
    raise UnexpectedResponseShapeError(
        f"Inference response had unsupported type {type(data).__name__}"
    )


def extract_summary_text(data: Any) -> str:
    """Decode a response payload and return its trimmed summary text."""
    shape = classify_response(data)
    if isinstance(shape, SequenceShape):
        fields = shape.first
    elif isinstance(shape, ObjectShape):
        fields = shape.body
    else:  # pragma: no cover - classify_response only returns the two shapes
        raise UnexpectedResponseShapeError(f"Unhandled response shape {shape!r}")

    present = [fields.get(key) for key in _TEXT_FIELDS if isinstance(fields.get(key), str)]
    if not present:
        raise UnexpectedResponseShapeError(
            "Inference response carried neither summary_text nor generated_text"
        )

    # An empty string defers to the next field; whitespace-only text does not.
    chosen = next((value for value in present if value), "").strip()
    if not chosen:
        raise EmptyResultError("Inference response contained an empty summary")
    return chosen


def primary_parameters(words: int) -> Dict[str, Any]:
    return {
        "max_length": min(150, math.floor(words * 0.3)),
        "min_length": max(30, math.floor(words * 0.1)),
        "do_sample": False,
        "early_stopping": True,
    }


class RemoteSummarizationClient:
    """Issues single-shot requests to the primary and secondary summarization models."""

    PRIMARY_TIMEOUT = 15.0
    SECONDARY_TIMEOUT = 10.0

    def __init__(
        self,
        api_key: str,
        base_url: str = DEFAULT_BASE_URL,
        *,
        primary_model: str = DEFAULT_PRIMARY_MODEL,
        secondary_model: str = DEFAULT_SECONDARY_MODEL,
        primary_timeout: float = PRIMARY_TIMEOUT,
        secondary_timeout: float = SECONDARY_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not api_key:
            raise AuthenticationError("Hugging Face API key is required")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.primary_model = primary_model
        self.secondary_model = secondary_model
        self.primary_timeout = primary_timeout
        self.secondary_timeout = secondary_timeout

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        # Deadlines are enforced per call with asyncio.wait_for.
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=None,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "RemoteSummarizationClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # ------------------------------
    # Summarization calls
    # ------------------------------
    async def summarize_primary(self, text: str) -> InferenceResult:
        cleaned = clean_text(text)
        payload = {
            "inputs": cleaned,
            "parameters": primary_parameters(word_count(cleaned)),
            "options": {"wait_for_model": True},
        }
        return await self._summarize(self.primary_model, payload, self.primary_timeout)

    async def summarize_secondary(self, text: str) -> InferenceResult:
        payload = {
            "inputs": clean_text(text),
            "options": {"wait_for_model": True},
        }
        return await self._summarize(self.secondary_model, payload, self.secondary_timeout)

    # ------------------------------
    # HTTP helpers
    # ------------------------------
    async def _summarize(self, model: str, payload: Mapping[str, Any], deadline: float) -> InferenceResult:
        response = await self._post_with_deadline(f"/{model}", payload, deadline)

        if not response.is_success:
            raise InferenceHTTPError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise UnexpectedResponseShapeError(f"{model} returned a non-JSON response") from exc

        return InferenceResult(text=extract_summary_text(data), model=model, raw=data)

    async def _post_with_deadline(
        self, path: str, payload: Mapping[str, Any], deadline: float
    ) -> httpx.Response:
        try:
            return await asyncio.wait_for(self._client.post(path, json=payload), timeout=deadline)
        except asyncio.TimeoutError as exc:
            raise InferenceTimeout(f"Request to {path} timed out after {deadline:g}s") from exc
        except httpx.TimeoutException as exc:
            raise InferenceTimeout(f"Request to {path} timed out") from exc
        except httpx.HTTPError as exc:  # network issues
            raise InferenceTransportError(f"Request to {path} failed: {exc}") from exc
