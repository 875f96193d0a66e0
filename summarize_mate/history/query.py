"""Search, filter, sort and export helpers for history listings."""
from __future__ import annotations

from datetime import date
from typing import Callable, Dict, List, Sequence, Union

from ..summaries.types import SummaryKind
from .records import HistoryRecord

ALL_KINDS = "all"


def search(records: Sequence[HistoryRecord], query: str) -> List[HistoryRecord]:
    """Case-insensitive match against title, summary and tags."""
    needle = query.strip().lower()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in record.title.lower()
        or needle in record.summary.lower()
        or any(needle in tag.lower() for tag in record.tags)
    ]


def filter_by_kind(
    records: Sequence[HistoryRecord], kind: Union[SummaryKind, str]
) -> List[HistoryRecord]:
    if kind == ALL_KINDS:
        return list(records)
    wanted = SummaryKind(kind)
    return [record for record in records if record.summary_kind == wanted]


def favorites(records: Sequence[HistoryRecord]) -> List[HistoryRecord]:
    return [record for record in records if record.is_favorite]


_SORTS: Dict[str, Callable[[Sequence[HistoryRecord]], List[HistoryRecord]]] = {
    "date": lambda records: sorted(records, key=lambda r: r.created_at, reverse=True),
    "date_asc": lambda records: sorted(records, key=lambda r: r.created_at),
    "title": lambda records: sorted(records, key=lambda r: r.title.casefold()),
    "title_desc": lambda records: sorted(records, key=lambda r: r.title.casefold(), reverse=True),
    "read_time": lambda records: sorted(records, key=lambda r: r.read_time_minutes),
}
SORT_ORDERS = tuple(_SORTS)


def sort_records(records: Sequence[HistoryRecord], order: str = "date") -> List[HistoryRecord]:
    try:
        sorter = _SORTS[order]
    except KeyError:
        raise ValueError(
            f"Unknown sort order '{order}'. Expected one of: {', '.join(SORT_ORDERS)}."
        ) from None
    return sorter(records)


def group_by_day(records: Sequence[HistoryRecord]) -> Dict[date, List[HistoryRecord]]:
    """Bucket records by calendar day, keeping their incoming order."""
    groups: Dict[date, List[HistoryRecord]] = {}
    for record in records:
        groups.setdefault(record.created_at.date(), []).append(record)
    return groups


def format_share_text(records: Sequence[HistoryRecord]) -> str:
    return "\n---\n".join(f"{record.title}\n{record.summary}\n" for record in records)
