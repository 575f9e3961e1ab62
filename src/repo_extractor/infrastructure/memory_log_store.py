"""In-memory processing log store."""

from __future__ import annotations

import asyncio
import itertools
from collections import deque

from repo_extractor.domain.entities import ProcessingLogEntry, ProcessingLogRecord


class MemoryLogStore:
    """Append-only, process-local log of acquisition attempts.

    Ids are assigned under a lock so concurrent requests never share one.
    When *history_limit* is set, the oldest records are dropped first.
    """

    def __init__(self, history_limit: int | None = None) -> None:
        self._records: deque[ProcessingLogRecord] = deque(maxlen=history_limit)
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def record(self, entry: ProcessingLogEntry) -> ProcessingLogRecord:
        async with self._lock:
            stored = ProcessingLogRecord(id=next(self._ids), entry=entry)
            self._records.append(stored)
        return stored

    async def recent(self, limit: int = 10) -> list[ProcessingLogRecord]:
        async with self._lock:
            records = list(self._records)
        records.sort(key=lambda r: (r.entry.processed_at, r.id), reverse=True)
        return records[: max(limit, 0)]

    def __len__(self) -> int:
        return len(self._records)
