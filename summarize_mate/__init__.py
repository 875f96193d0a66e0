"""Text summarization with remote-model fallback and a persistent history."""
from __future__ import annotations

from .history import HistoryRecord, HistoryStore
from .summaries import Producer, SummarizationOrchestrator, SummaryKind, SummaryOutcome, SummaryRequest
from .text_metrics import (
    EmptyInputError,
    TextValidationError,
    TooLongError,
    TooShortError,
)

__version__ = "0.1.0"

__all__ = [
    "SummaryKind",
    "Producer",
    "SummaryRequest",
    "SummaryOutcome",
    "SummarizationOrchestrator",
    "HistoryRecord",
    "HistoryStore",
    "TextValidationError",
    "EmptyInputError",
    "TooShortError",
    "TooLongError",
]
