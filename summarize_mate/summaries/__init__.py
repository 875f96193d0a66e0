"""Shared exports for the summarization feature."""
from __future__ import annotations

from .heuristic import HeuristicSummarizer
from .inference_client import (
    AuthenticationError,
    EmptyResultError,
    InferenceError,
    InferenceHTTPError,
    InferenceResult,
    InferenceTimeout,
    InferenceTransportError,
    RemoteSummarizationClient,
    UnexpectedResponseShapeError,
)
from .service import OrchestratorState, SummarizationOrchestrator
from .types import Producer, SummaryKind, SummaryOutcome, SummaryRequest


__all__ = [
    "SummaryKind",
    "Producer",
    "SummaryRequest",
    "SummaryOutcome",
    "HeuristicSummarizer",
    "RemoteSummarizationClient",
    "InferenceResult",
    "InferenceError",
    "AuthenticationError",
    "InferenceTimeout",
    "InferenceTransportError",
    "InferenceHTTPError",
    "UnexpectedResponseShapeError",
    "EmptyResultError",
    "OrchestratorState",
    "SummarizationOrchestrator",
]
