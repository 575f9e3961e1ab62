"""Acquire-repository use case: the main orchestration pipeline.

This is the single entry point for the business logic.  It depends only on
the ports (:class:`DiscoveryStrategy`, :class:`ContentSource`,
:class:`LogStore`) and the pure service modules.  The interface layer
injects concrete adapters at runtime.

Phases run strictly in order::

    ResolveBranch -> Discover -> Dedup -> FetchAll -> Aggregate

and every failure below this class is turned into data: ``execute`` always
returns an :class:`AcquisitionResult`.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from typing import Iterable, Sequence

from repo_extractor.domain.entities import (
    AcquisitionResult,
    Discovery,
    DiscoveryPolicy,
    FetchedFile,
    FileKind,
    ProcessingLogEntry,
    RepositoryIdentity,
)
from repo_extractor.domain.ports.discovery_strategy import DiscoveryStrategy
from repo_extractor.domain.ports.log_store import LogStore
from repo_extractor.services.binary_classifier import is_excluded
from repo_extractor.services.branch_resolver import BranchResolver
from repo_extractor.services.content_fetcher import ContentFetcher, count_lines

logger = logging.getLogger(__name__)

# ── Synthetic content ───────────────────────────────────────────────────────

EMPTY_TEMPLATE = """\
# Repository: {full_name}

This repository couldn't be processed completely: no files could be discovered.
Please try again later or try a different repository.
"""

ERROR_TEMPLATE = """\
# Repository: {full_name}

An error occurred while fetching this repository: {error}

Please try again later or try a different repository.
"""

BANNER_RULE = "#" * 80


def render_banner(identity: RepositoryIdentity, url: str, extracted_at: str) -> str:
    """Metadata banner placed before the first file block."""
    return (
        f"{BANNER_RULE}\n"
        "# GITHUB REPOSITORY EXTRACTION\n"
        f"# Repository: {identity.full_name}\n"
        f"# Source URL: {url}\n"
        f"# Extracted on: {extracted_at}\n"
        f"{BANNER_RULE}\n\n"
    )


def dedupe_paths(paths: Iterable[str], max_files: int | None = None) -> list[str]:
    """Normalise, drop duplicates and excluded paths, keep first-seen order."""
    seen: dict[str, None] = {}
    for raw in paths:
        path = raw.replace("\\", "/").lstrip("/")
        if not path or is_excluded(path) or path in seen:
            continue
        seen[path] = None
    unique = list(seen)
    if max_files is not None and len(unique) > max_files:
        logger.info("Capping %d discovered files at %d", len(unique), max_files)
        unique = unique[:max_files]
    return unique


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ── Use case ────────────────────────────────────────────────────────────────


class AcquireRepositoryUseCase:
    """Orchestrates the full identity → text artifact pipeline.

    Parameters
    ----------
    resolver:
        Picks the branch used by every later phase.
    strategies:
        Discovery strategies in the order they are tried.
    fetcher:
        Formats the content of one path.
    log_store:
        Receives one entry per completed call.
    policy:
        ``FIRST_NON_EMPTY`` stops at the first strategy that finds files;
        ``MOST_FILES`` runs them all and keeps the largest list.
    max_files:
        Optional ceiling on the number of discovered files kept.
    concurrency:
        Maximum number of content fetches in flight.
    include_banner:
        Prefix the artifact with a repository / timestamp banner.
    """

    def __init__(
        self,
        resolver: BranchResolver,
        strategies: Sequence[DiscoveryStrategy],
        fetcher: ContentFetcher,
        log_store: LogStore | None = None,
        policy: DiscoveryPolicy = DiscoveryPolicy.FIRST_NON_EMPTY,
        max_files: int | None = None,
        concurrency: int = 8,
        include_banner: bool = False,
    ) -> None:
        self._resolver = resolver
        self._strategies = list(strategies)
        self._fetcher = fetcher
        self._log_store = log_store
        self._policy = policy
        self._max_files = max_files
        self._concurrency = max(1, concurrency)
        self._include_banner = include_banner

    # ── Public entry point ──────────────────────────────────────────────

    async def execute(
        self,
        identity: RepositoryIdentity,
        credential: str | None = None,
        repository_url: str | None = None,
    ) -> AcquisitionResult:
        """Run the pipeline; never raises except on cancellation."""
        url = repository_url or f"https://github.com/{identity.full_name}"
        logger.info("Acquiring %s", identity.full_name)

        error_message: str | None = None
        try:
            result = await self._acquire(identity, credential, url)
        except Exception as exc:
            logger.exception("Acquisition of %s failed", identity.full_name)
            error_message = str(exc) or type(exc).__name__
            result = self._synthetic(ERROR_TEMPLATE, identity, error=error_message)

        await self._record(url, result, error_message)
        logger.info(
            "Finished %s: %d files, %d lines",
            identity.full_name,
            result.file_count,
            result.line_count,
        )
        return result

    # ── Phases ──────────────────────────────────────────────────────────

    async def _acquire(
        self, identity: RepositoryIdentity, credential: str | None, url: str
    ) -> AcquisitionResult:
        branch = await self._resolver.resolve(identity, credential)

        # The stack owns any workspace a strategy keeps open for fetching.
        async with AsyncExitStack() as stack:
            discovery = await self._discover(identity, branch, stack, credential)
            paths = dedupe_paths(discovery.paths, self._max_files)
            if not paths or discovery.source is None:
                logger.warning("No files discovered for %s", identity.full_name)
                return self._synthetic(EMPTY_TEMPLATE, identity)

            logger.info(
                "Fetching %d files from %s@%s via %s",
                len(paths),
                identity.full_name,
                branch,
                discovery.strategy,
            )
            fetched = await self._fetch_all(identity, branch, discovery, paths)

        return self._aggregate(identity, url, fetched)

    async def _discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None,
    ) -> Discovery:
        best = Discovery(strategy="none")
        for strategy in self._strategies:
            try:
                found = await strategy.discover(identity, branch, stack, credential)
            except Exception:
                logger.warning(
                    "Discovery strategy %s failed for %s",
                    strategy.name,
                    identity.full_name,
                    exc_info=True,
                )
                continue

            logger.info(
                "Strategy %s found %d paths for %s",
                strategy.name,
                len(found.paths),
                identity.full_name,
            )
            if not found:
                continue
            if self._policy is DiscoveryPolicy.FIRST_NON_EMPTY:
                return found
            if len(found.paths) > len(best.paths):
                best = found
        return best

    async def _fetch_all(
        self,
        identity: RepositoryIdentity,
        branch: str,
        discovery: Discovery,
        paths: list[str],
    ) -> list[FetchedFile]:
        """Fetch concurrently; ``gather`` keeps results in discovery order."""
        assert discovery.source is not None
        source = discovery.source
        sem = asyncio.Semaphore(self._concurrency)

        async def _fetch_one(path: str) -> FetchedFile:
            async with sem:
                try:
                    return await self._fetcher.fetch(identity, branch, path, source)
                except Exception:
                    logger.debug("Unexpected failure fetching %s", path, exc_info=True)
                    return self._fetcher.placeholder(path, FileKind.UNAVAILABLE)

        return list(await asyncio.gather(*(_fetch_one(p) for p in paths)))

    def _aggregate(
        self, identity: RepositoryIdentity, url: str, fetched: list[FetchedFile]
    ) -> AcquisitionResult:
        parts: list[str] = []
        if self._include_banner:
            parts.append(render_banner(identity, url, _utc_now()))

        file_count = 0
        line_count = 0
        for item in fetched:
            parts.append(item.formatted_content)
            line_count += item.line_count
            if item.kind is not FileKind.BINARY and item.formatted_content:
                file_count += 1

        return AcquisitionResult(
            content="".join(parts),
            file_count=file_count,
            line_count=line_count,
        )

    # ── Helpers ─────────────────────────────────────────────────────────

    @staticmethod
    def _synthetic(
        template: str, identity: RepositoryIdentity, error: str = ""
    ) -> AcquisitionResult:
        content = template.format(full_name=identity.full_name, error=error)
        return AcquisitionResult(
            content=content,
            file_count=0,
            line_count=count_lines(content.rstrip("\n")),
        )

    async def _record(
        self, url: str, result: AcquisitionResult, error_message: str | None
    ) -> None:
        if self._log_store is None:
            return
        entry = ProcessingLogEntry(
            repository_url=url,
            file_count=result.file_count,
            line_count=result.line_count,
            processed_at=_utc_now(),
            success=error_message is None,
            error_message=error_message,
        )
        try:
            await self._log_store.record(entry)
        except Exception:
            logger.exception("Failed to record processing log for %s", url)
