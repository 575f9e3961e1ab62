"""Application configuration, loaded from environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from repo_extractor.domain.entities import DiscoveryPolicy, HeaderStyle

KNOWN_STRATEGIES: frozenset[str] = frozenset({"tree", "scrape", "clone"})


class Settings(BaseSettings):
    """Central configuration loaded from env vars (or ``.env`` file)."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    github_token: SecretStr | None = None

    # Branch resolution
    branch_candidates: list[str] = ["main", "master", "develop"]
    branch_marker_file: str = "README.md"

    # Discovery
    discovery_order: list[str] = ["tree", "scrape", "clone"]
    discovery_policy: DiscoveryPolicy = DiscoveryPolicy.FIRST_NON_EMPTY
    emit_binary_placeholders: bool = True
    max_files: int | None = None
    scrape_max_depth: int = 20
    scrape_max_pages: int = 500
    workspace_root: str | None = None

    # Content
    max_lines_per_file: int = 2000
    fetch_concurrency: int = 8
    header_style: HeaderStyle = HeaderStyle.SEPARATOR
    include_metadata_header: bool = True

    # Timeouts (seconds)
    probe_timeout_seconds: float = 5.0
    content_timeout_seconds: float = 8.0
    page_timeout_seconds: float = 10.0
    api_timeout_seconds: float = 30.0
    clone_timeout_seconds: float = 120.0

    log_history_limit: int | None = 1000
    log_level: str = "INFO"
    host: str = "0.0.0.0"
    port: int = 8000

    @field_validator("discovery_order")
    @classmethod
    def _known_strategies(cls, v: list[str]) -> list[str]:
        order = [name.strip().lower() for name in v if name.strip()]
        unknown = [name for name in order if name not in KNOWN_STRATEGIES]
        if unknown:
            msg = f"Unknown discovery strategies: {', '.join(unknown)}"
            raise ValueError(msg)
        if len(set(order)) != len(order):
            msg = "discovery_order must not repeat a strategy."
            raise ValueError(msg)
        if not order:
            msg = "discovery_order must name at least one strategy."
            raise ValueError(msg)
        return order

    @field_validator("branch_candidates")
    @classmethod
    def _non_empty_candidates(cls, v: list[str]) -> list[str]:
        names = [name.strip() for name in v if name.strip()]
        if not names:
            msg = "branch_candidates must contain at least one branch name."
            raise ValueError(msg)
        return names


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the singleton application settings (cached after first call)."""
    return Settings()
