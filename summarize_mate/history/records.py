"""History record dataclass and its explicit JSON (de)serialisation."""
from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Sequence

from ..summaries.types import SummaryKind


class SourceKind(str, Enum):
    TEXT = "text"
    URL = "url"
    DOCUMENT = "document"


class RecordDecodeError(ValueError):
    """Raised when stored history cannot be turned back into records."""


@dataclass
class HistoryRecord:
    """Normalized representation of one stored summarization."""

    id: str
    title: str
    summary: str
    original_text: str
    created_at: datetime
    summary_kind: SummaryKind = SummaryKind.BRIEF
    word_count: int = 0
    read_time_minutes: int = 1
    source_kind: SourceKind = SourceKind.TEXT
    tags: List[str] = field(default_factory=lambda: ["summary"])
    is_favorite: bool = False


IMMUTABLE_FIELDS = frozenset({"id", "created_at"})
RECORD_FIELDS = frozenset(f.name for f in fields(HistoryRecord))

# Keys written by the mobile app before records were normalized.
_LEGACY_KEYS = {
    "date": "created_at",
    "createdAt": "created_at",
    "originalText": "original_text",
    "wordCount": "word_count",
    "readTime": "read_time_minutes",
    "readTimeMinutes": "read_time_minutes",
    "type": "summary_kind",
    "summaryKind": "summary_kind",
    "source": "source_kind",
    "sourceKind": "source_kind",
    "isFavorite": "is_favorite",
}
_LEADING_INT_RE = re.compile(r"^\s*(\d+)")


def parse_timestamp(value: Any) -> datetime:
    """Materialize a stored date (ISO string, epoch millis or datetime) as an aware datetime."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise RecordDecodeError(f"Unparseable history timestamp {value!r}") from exc
    else:
        raise RecordDecodeError(f"Unsupported history timestamp {value!r}")

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _read_minutes(value: Any) -> int:
    if isinstance(value, str):
        match = _LEADING_INT_RE.match(value)
        value = int(match.group(1)) if match else 1
    return max(1, int(value))


def record_to_dict(record: HistoryRecord) -> Dict[str, Any]:
    data = asdict(record)
    data["created_at"] = record.created_at.isoformat()
    data["summary_kind"] = SummaryKind(record.summary_kind).value
    data["source_kind"] = SourceKind(record.source_kind).value
    return data


def record_from_dict(data: Mapping[str, Any]) -> HistoryRecord:
    if not isinstance(data, Mapping):
        raise RecordDecodeError("History entry must be a JSON object")

    normalized: Dict[str, Any] = {}
    for key, value in data.items():
        name = _LEGACY_KEYS.get(key, key)
        if name in RECORD_FIELDS:
            normalized[name] = value

    missing = {"id", "summary", "created_at"} - set(normalized)
    if missing:
        raise RecordDecodeError(f"History entry missing fields: {', '.join(sorted(missing))}")

    summary = str(normalized["summary"])
    tags = [str(tag) for tag in normalized.get("tags") or []] or ["summary"]
    try:
        return HistoryRecord(
            id=str(normalized["id"]),
            title=str(normalized.get("title") or ""),
            summary=summary,
            original_text=str(normalized.get("original_text") or ""),
            created_at=parse_timestamp(normalized["created_at"]),
            summary_kind=SummaryKind(normalized.get("summary_kind") or SummaryKind.BRIEF),
            word_count=int(normalized.get("word_count") or 0),
            read_time_minutes=_read_minutes(normalized.get("read_time_minutes") or 1),
            source_kind=SourceKind(normalized.get("source_kind") or SourceKind.TEXT),
            tags=tags,
            is_favorite=bool(normalized.get("is_favorite", False)),
        )
    except RecordDecodeError:
        raise
    except (TypeError, ValueError) as exc:
        raise RecordDecodeError(f"Malformed history entry {normalized.get('id')!r}: {exc}") from exc


def dumps_records(records: Sequence[HistoryRecord]) -> str:
    return json.dumps([record_to_dict(record) for record in records], ensure_ascii=False)


def loads_records(payload: str) -> List[HistoryRecord]:
    try:
        data = json.loads(payload)
    except ValueError as exc:
        raise RecordDecodeError("Stored history is not valid JSON") from exc
    if not isinstance(data, list):
        raise RecordDecodeError("Stored history must be a JSON array")
    return [record_from_dict(item) for item in data]
