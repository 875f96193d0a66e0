from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from summarize_mate.history.backends import MemoryBackend
from summarize_mate.history.store import HistoryStore

PHOENIX_TEXT = "The Project Phoenix launch is scheduled for next spring across all regions."

LONG_TEXT = (
    "Solar panels convert sunlight into electricity using photovoltaic cells. "
    "Energy storage systems keep that electricity available after sunset. "
    "Grid operators balance solar energy with wind and hydro sources. "
    "Households with solar panels often sell surplus energy back to the grid."
)


class StepClock:
    """Deterministic clock advancing one second per call."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        value = self.current
        self.current = value + timedelta(seconds=1)
        return value


@pytest.fixture
def clock() -> StepClock:
    return StepClock(datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def memory_store(clock: StepClock) -> HistoryStore:
    return HistoryStore(MemoryBackend(), clock=clock)
