"""Summary history persistence with a permanent in-memory failover."""
from __future__ import annotations

import dataclasses
import logging
from datetime import datetime, timezone
from typing import Callable, Collection, Dict, Iterable, List, Mapping, Optional

from ..summaries.heuristic import MAX_TAGS, HeuristicSummarizer
from ..summaries.types import SummaryKind, SummaryOutcome
from .backends import MemoryBackend, StorageBackend, StorageError
from .records import (
    IMMUTABLE_FIELDS,
    RECORD_FIELDS,
    HistoryRecord,
    RecordDecodeError,
    SourceKind,
    dumps_records,
    loads_records,
)

HISTORY_STORAGE_KEY = "@SummarizeMate:history"
_PROBE_KEY = "@SummarizeMate:probe"

RecordsTransform = Callable[[List[HistoryRecord]], List[HistoryRecord]]


class HistoryStore:
    """Most-recent-first collection of history records.

    Every operation rewrites the whole collection. Overlapping writes from
    concurrent tasks are last-writer-wins.
    """

    def __init__(
        self,
        backend: StorageBackend,
        *,
        fallback: Optional[StorageBackend] = None,
        summarizer: Optional[HeuristicSummarizer] = None,
        storage_key: str = HISTORY_STORAGE_KEY,
        clock: Optional[Callable[[], datetime]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._backend = backend
        self._fallback = fallback or MemoryBackend()
        self._summarizer = summarizer or HeuristicSummarizer()
        self._key = storage_key
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._logger = logger or logging.getLogger(__name__)
        self._ready = False
        self._degraded = False

    @property
    def degraded(self) -> bool:
        """True once the durable backend failed and memory took over."""
        return self._degraded

    # ------------------------------
    # Public operations
    # ------------------------------
    async def create(
        self, outcome: SummaryOutcome, *, source_kind: SourceKind = SourceKind.TEXT
    ) -> HistoryRecord:
        created: List[HistoryRecord] = []

        def prepend(records: List[HistoryRecord]) -> List[HistoryRecord]:
            record = self._build_record(outcome, records, source_kind)
            created[:] = [record]
            return [record] + records

        await self._mutate("create", prepend)
        self._log_debug("created", {"id": created[0].id, "tags": created[0].tags})
        return created[0]

    async def list(self) -> List[HistoryRecord]:
        backend = await self._active_backend()
        try:
            return await self._load(backend)
        except (StorageError, RecordDecodeError) as exc:
            if backend is self._fallback:
                raise
            self._degrade("list", exc)
            return await self._load(self._fallback)

    async def get(self, record_id: str) -> Optional[HistoryRecord]:
        for record in await self.list():
            if record.id == record_id:
                return record
        return None

    async def update(self, record_id: str, changes: Mapping[str, object]) -> List[HistoryRecord]:
        """Merge ``changes`` into the record with ``record_id``; other records pass through."""
        changes = _check_update_fields(changes)

        def merge(records: List[HistoryRecord]) -> List[HistoryRecord]:
            return [
                dataclasses.replace(record, **changes) if record.id == record_id else record
                for record in records
            ]

        return await self._mutate("update", merge)

    async def delete_many(self, record_ids: Iterable[str]) -> List[HistoryRecord]:
        doomed = set(record_ids)
        if not doomed:
            return await self.list()

        def remove(records: List[HistoryRecord]) -> List[HistoryRecord]:
            return [record for record in records if record.id not in doomed]

        return await self._mutate("delete", remove)

    async def clear(self) -> None:
        backend = await self._active_backend()
        try:
            await backend.remove_item(self._key)
        except StorageError as exc:
            if backend is self._fallback:
                raise
            self._degrade("clear", exc)
        await self._fallback.remove_item(self._key)

    # ------------------------------
    # Backend selection
    # ------------------------------
    async def _active_backend(self) -> StorageBackend:
        if not self._ready:
            self._ready = True
            try:
                await self._backend.get_item(_PROBE_KEY)
            except StorageError as exc:
                self._degrade("probe", exc)
        return self._fallback if self._degraded else self._backend

    def _degrade(self, operation: str, exc: Exception) -> None:
        if not self._degraded:
            self._logger.warning(
                "History storage failed during %s (%s); using in-memory history for the rest of this process",
                operation,
                exc,
            )
        self._degraded = True

    async def _mutate(self, operation: str, transform: RecordsTransform) -> List[HistoryRecord]:
        backend = await self._active_backend()
        try:
            records = transform(await self._load(backend))
            await self._save(backend, records)
            return records
        except (StorageError, RecordDecodeError) as exc:
            if backend is self._fallback:
                raise
            self._degrade(operation, exc)

        records = transform(await self._load(self._fallback))
        await self._save(self._fallback, records)
        return records

    async def _load(self, backend: StorageBackend) -> List[HistoryRecord]:
        payload = await backend.get_item(self._key)
        if not payload:
            return []
        return loads_records(payload)

    async def _save(self, backend: StorageBackend, records: List[HistoryRecord]) -> None:
        await backend.set_item(self._key, dumps_records(records))

    # ------------------------------
    # Record derivation
    # ------------------------------
    def _build_record(
        self,
        outcome: SummaryOutcome,
        existing: Collection[HistoryRecord],
        source_kind: SourceKind,
    ) -> HistoryRecord:
        created_at = self._clock()
        return HistoryRecord(
            id=_fresh_id(created_at, {record.id for record in existing}),
            title=self._summarizer.derive_title(outcome.summary_text),
            summary=outcome.summary_text,
            original_text=outcome.original_text,
            created_at=created_at,
            summary_kind=_coerce_kind(outcome.summary_kind),
            word_count=outcome.word_count,
            read_time_minutes=self._summarizer.estimate_read_time(outcome.summary_text),
            source_kind=source_kind,
            tags=self._summarizer.derive_tags(outcome.original_text, outcome.summary_text),
            is_favorite=False,
        )

    def _log_debug(self, event: str, extra: Mapping[str, object]) -> None:
        payload = {"event": event, "storage_key": self._key, "degraded": self._degraded}
        payload.update(dict(extra))
        self._logger.debug("history-store", extra={"history": payload})


def _fresh_id(created_at: datetime, taken: Collection[str]) -> str:
    candidate = int(created_at.timestamp() * 1000)
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def _coerce_kind(kind: object) -> SummaryKind:
    try:
        return SummaryKind(kind)
    except ValueError:
        return SummaryKind.BRIEF


def _check_update_fields(changes: Mapping[str, object]) -> Dict[str, object]:
    """Return ``changes`` with values checked and coerced, or raise ``ValueError``."""
    frozen = IMMUTABLE_FIELDS.intersection(changes)
    if frozen:
        raise ValueError(f"History fields cannot be changed: {', '.join(sorted(frozen))}")
    unknown = set(changes) - RECORD_FIELDS
    if unknown:
        raise ValueError(f"Unknown history fields: {', '.join(sorted(unknown))}")

    normalized = dict(changes)
    for name in ("title", "summary", "original_text"):
        if name in normalized and not isinstance(normalized[name], str):
            raise ValueError(f"History field '{name}' must be a string")
    for name in ("word_count", "read_time_minutes"):
        if name in normalized:
            value = normalized[name]
            floor = 1 if name == "read_time_minutes" else 0
            if isinstance(value, bool) or not isinstance(value, int) or value < floor:
                raise ValueError(f"History field '{name}' must be an integer >= {floor}")
    if "is_favorite" in normalized and not isinstance(normalized["is_favorite"], bool):
        raise ValueError("History field 'is_favorite' must be a boolean")
    if "summary_kind" in normalized:
        normalized["summary_kind"] = SummaryKind(normalized["summary_kind"])
    if "source_kind" in normalized:
        normalized["source_kind"] = SourceKind(normalized["source_kind"])
    if "tags" in normalized:
        normalized["tags"] = _check_tags(normalized["tags"])
    return normalized


def _check_tags(tags: object) -> List[str]:
    if isinstance(tags, str) or not isinstance(tags, (list, tuple)):
        raise ValueError("History field 'tags' must be a list of strings")
    unique: List[str] = []
    for tag in tags:
        if not isinstance(tag, str) or not tag.strip():
            raise ValueError("History tags must be non-empty strings")
        if tag not in unique:
            unique.append(tag)
    if not 1 <= len(unique) <= MAX_TAGS:
        raise ValueError(f"History records carry between 1 and {MAX_TAGS} tags")
    return unique
