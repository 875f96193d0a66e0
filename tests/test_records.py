from __future__ import annotations

from datetime import datetime, timezone

import pytest

from summarize_mate.history.records import (
    HistoryRecord,
    RecordDecodeError,
    SourceKind,
    dumps_records,
    loads_records,
    parse_timestamp,
    record_from_dict,
)
from summarize_mate.summaries.types import SummaryKind


def _record(**overrides):
    values = dict(
        id="1714555800000",
        title="Project Phoenix",
        summary="Project Phoenix launches next spring.",
        original_text="The Project Phoenix launch is scheduled for next spring.",
        created_at=datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc),
        summary_kind=SummaryKind.BULLET,
        word_count=10,
        read_time_minutes=1,
        source_kind=SourceKind.DOCUMENT,
        tags=["project", "phoenix"],
        is_favorite=True,
    )
    values.update(overrides)
    return HistoryRecord(**values)


def test_dump_and_load_preserve_timestamps_as_datetimes():
    record = _record()
    restored = loads_records(dumps_records([record]))
    assert restored == [record]
    assert isinstance(restored[0].created_at, datetime)


@pytest.mark.parametrize(
    "value",
    [
        "2024-05-01T09:30:00.000Z",
        "2024-05-01T09:30:00+00:00",
        "2024-05-01T09:30:00",
        1714555800000,
    ],
)
def test_parse_timestamp_accepts_text_and_epoch_millis(value):
    assert parse_timestamp(value) == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def test_parse_timestamp_rejects_garbage():
    with pytest.raises(RecordDecodeError):
        parse_timestamp("yesterday")


def test_legacy_mobile_entry_is_normalized():
    legacy = {
        "id": "1714555800000",
        "title": "Project Phoenix",
        "summary": "Project Phoenix launches next spring.",
        "originalText": "The Project Phoenix launch is scheduled.",
        "date": "2024-05-01T09:30:00.000Z",
        "type": "detailed",
        "wordCount": 7,
        "readTime": "2 min",
        "source": "url",
        "tags": [],
        "isFavorite": True,
    }

    record = record_from_dict(legacy)

    assert record.created_at == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
    assert record.summary_kind is SummaryKind.DETAILED
    assert record.read_time_minutes == 2
    assert record.source_kind is SourceKind.URL
    assert record.tags == ["summary"]
    assert record.is_favorite is True


@pytest.mark.parametrize(
    "payload",
    ["{not json", '{"id": "1"}', '[{"id": "1", "summary": "x"}]', '[{"id": "1", "summary": "x", "created_at": "now"}]'],
)
def test_loads_records_rejects_bad_payloads(payload):
    with pytest.raises(RecordDecodeError):
        loads_records(payload)
