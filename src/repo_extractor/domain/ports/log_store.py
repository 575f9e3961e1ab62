"""Port: processing log store."""

from __future__ import annotations

from typing import Protocol

from repo_extractor.domain.entities import ProcessingLogEntry, ProcessingLogRecord


class LogStore(Protocol):
    """Append-only record of acquisition attempts."""

    async def record(self, entry: ProcessingLogEntry) -> ProcessingLogRecord:
        """Persist *entry* and return it with its assigned id."""
        ...

    async def recent(self, limit: int = 10) -> list[ProcessingLogRecord]:
        """Return up to *limit* records, newest first."""
        ...
