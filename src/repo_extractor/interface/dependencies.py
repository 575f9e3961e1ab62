"""FastAPI dependency injection wiring."""

from __future__ import annotations

import logging

import httpx

from repo_extractor.domain.ports.discovery_strategy import DiscoveryStrategy
from repo_extractor.infrastructure.config import Settings, get_settings
from repo_extractor.infrastructure.git_clone import CloneDiscovery
from repo_extractor.infrastructure.github_rest_adapter import GitHubRestAdapter, TreeQueryDiscovery
from repo_extractor.infrastructure.html_scraper import GitHubPageScraper, ScrapingDiscovery
from repo_extractor.infrastructure.memory_log_store import MemoryLogStore
from repo_extractor.infrastructure.raw_content_source import RawContentSource
from repo_extractor.services.acquire_repository import AcquireRepositoryUseCase
from repo_extractor.services.branch_resolver import BranchResolver
from repo_extractor.services.content_fetcher import ContentFetcher

logger = logging.getLogger(__name__)

_http_client: httpx.AsyncClient | None = None
_log_store: MemoryLogStore | None = None


async def startup() -> None:
    """Initialise shared resources. Called from the lifespan context manager."""
    global _http_client, _log_store  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.api_timeout_seconds))
    if _log_store is None:
        _log_store = MemoryLogStore(history_limit=settings.log_history_limit)


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


def build_use_case(
    settings: Settings,
    client: httpx.AsyncClient,
    log_store: MemoryLogStore | None,
) -> AcquireRepositoryUseCase:
    """Assemble the pipeline described by *settings* around a shared HTTP client."""
    include_binaries = settings.emit_binary_placeholders
    raw_source = RawContentSource(
        client,
        content_timeout=settings.content_timeout_seconds,
        probe_timeout=settings.probe_timeout_seconds,
    )
    rest = GitHubRestAdapter(client, timeout=settings.api_timeout_seconds)
    scraper = GitHubPageScraper(client, timeout=settings.page_timeout_seconds)

    available: dict[str, DiscoveryStrategy] = {
        "tree": TreeQueryDiscovery(rest, raw_source, include_binaries=include_binaries),
        "scrape": ScrapingDiscovery(
            scraper,
            raw_source,
            max_depth=settings.scrape_max_depth,
            max_pages=settings.scrape_max_pages,
            include_binaries=include_binaries,
        ),
        "clone": CloneDiscovery(
            workspace_root=settings.workspace_root,
            timeout=settings.clone_timeout_seconds,
            include_binaries=include_binaries,
        ),
    }

    resolver = BranchResolver(
        hints=[rest, scraper],
        probe=raw_source,
        candidates=settings.branch_candidates,
        marker_file=settings.branch_marker_file,
    )
    return AcquireRepositoryUseCase(
        resolver=resolver,
        strategies=[available[name] for name in settings.discovery_order],
        fetcher=ContentFetcher(
            max_lines=settings.max_lines_per_file,
            header_style=settings.header_style,
        ),
        log_store=log_store,
        policy=settings.discovery_policy,
        max_files=settings.max_files,
        concurrency=settings.fetch_concurrency,
        include_banner=settings.include_metadata_header,
    )


def get_log_store() -> MemoryLogStore:
    assert _log_store is not None, "startup() was not called"
    return _log_store


def get_credential() -> str | None:
    """GitHub token forwarded to API calls; never logged."""
    settings = get_settings()
    return settings.github_token.get_secret_value() if settings.github_token else None


def get_use_case() -> AcquireRepositoryUseCase:
    """Build the use case with injected adapters."""
    assert _http_client is not None, "startup() was not called"
    return build_use_case(get_settings(), _http_client, get_log_store())
