"""Dataclasses and enums shared across the summaries feature."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class SummaryKind(str, Enum):
    BRIEF = "brief"
    DETAILED = "detailed"
    BULLET = "bullet"


class Producer(str, Enum):
    """Which stage of the fallback chain produced a summary."""

    PRIMARY_MODEL = "primary_model"
    SECONDARY_MODEL = "secondary_model"
    HEURISTIC = "heuristic"


@dataclass(frozen=True)
class SummaryRequest:
    """Immutable request payload handed to the orchestrator by UI callers."""

    text: str
    summary_kind: SummaryKind = SummaryKind.BRIEF


@dataclass(frozen=True)
class SummaryOutcome:
    """The single result produced for a request."""

    summary_text: str
    produced_by: Producer
    original_text: str
    word_count: int
    summary_kind: SummaryKind = SummaryKind.BRIEF
