"""Shared stubs and fixtures for the repo_extractor test-suite."""

from __future__ import annotations

from contextlib import AsyncExitStack

import pytest

from repo_extractor.domain.entities import (
    Discovery,
    ProcessingLogEntry,
    ProcessingLogRecord,
    RawContent,
    RepositoryIdentity,
)
from repo_extractor.domain.exceptions import ContentFetchError
from repo_extractor.infrastructure.config import get_settings


class StubSource:
    """In-memory ContentSource; values may be bytes, RawContent or an exception."""

    def __init__(self, files: dict[str, object] | None = None) -> None:
        self.files = dict(files or {})
        self.reads: list[tuple[str, str]] = []

    async def read(self, identity: RepositoryIdentity, branch: str, path: str) -> RawContent:
        self.reads.append((branch, path))
        value = self.files.get(path)
        if value is None:
            raise ContentFetchError(f"File not found: {path}")
        if isinstance(value, BaseException):
            raise value
        if isinstance(value, RawContent):
            return value
        assert isinstance(value, bytes)
        return RawContent(data=value, media_type="text/plain; charset=utf-8")


class StubStrategy:
    """DiscoveryStrategy returning a fixed list and counting its invocations."""

    def __init__(
        self,
        name: str,
        paths: list[str] | None = None,
        source: StubSource | None = None,
        error: Exception | None = None,
    ) -> None:
        self.name = name
        self.paths = list(paths or [])
        self.source = source if source is not None else StubSource()
        self.error = error
        self.calls = 0
        self.branches: list[str] = []

    async def discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None = None,
    ) -> Discovery:
        self.calls += 1
        self.branches.append(branch)
        if self.error is not None:
            raise self.error
        if not self.paths:
            return Discovery(strategy=self.name)
        return Discovery(strategy=self.name, paths=list(self.paths), source=self.source)


class RecordingLogStore:
    """LogStore that keeps entries in a list and can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.entries: list[ProcessingLogEntry] = []
        self.fail = fail

    async def record(self, entry: ProcessingLogEntry) -> ProcessingLogRecord:
        if self.fail:
            raise RuntimeError("log store is down")
        self.entries.append(entry)
        return ProcessingLogRecord(id=len(self.entries), entry=entry)

    async def recent(self, limit: int = 10) -> list[ProcessingLogRecord]:
        return [ProcessingLogRecord(id=i + 1, entry=e) for i, e in enumerate(self.entries)][:limit]


class StaticHint:
    """BranchHintSource answering a fixed value (or raising)."""

    def __init__(self, branch: str | None = None, error: Exception | None = None) -> None:
        self.branch = branch
        self.error = error
        self.calls = 0

    async def default_branch(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> str | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.branch


class StubProbe:
    """BranchProbe confirming only the branches in *existing*."""

    def __init__(self, existing: set[str] | None = None, error: Exception | None = None) -> None:
        self.existing = existing or set()
        self.error = error
        self.probed: list[tuple[str, str]] = []

    async def exists(self, identity: RepositoryIdentity, branch: str, path: str) -> bool:
        self.probed.append((branch, path))
        if self.error is not None:
            raise self.error
        return branch in self.existing


@pytest.fixture
def identity() -> RepositoryIdentity:
    return RepositoryIdentity(owner="acme", name="widgets")


@pytest.fixture(autouse=True)
def _clear_settings_cache(monkeypatch: pytest.MonkeyPatch):
    """Keep a developer's environment or ``.env`` out of the tests."""
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
