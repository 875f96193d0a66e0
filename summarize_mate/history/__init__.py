"""Shared exports for the summary history feature."""
from __future__ import annotations

from .backends import FileBackend, MemoryBackend, StorageBackend, StorageError
from .query import (
    ALL_KINDS,
    SORT_ORDERS,
    favorites,
    filter_by_kind,
    format_share_text,
    group_by_day,
    search,
    sort_records,
)
from .records import HistoryRecord, RecordDecodeError, SourceKind
from .store import HISTORY_STORAGE_KEY, HistoryStore


__all__ = [
    "HistoryRecord",
    "SourceKind",
    "RecordDecodeError",
    "StorageBackend",
    "StorageError",
    "FileBackend",
    "MemoryBackend",
    "HistoryStore",
    "HISTORY_STORAGE_KEY",
    "ALL_KINDS",
    "SORT_ORDERS",
    "search",
    "filter_by_kind",
    "favorites",
    "sort_records",
    "group_by_day",
    "format_share_text",
]
