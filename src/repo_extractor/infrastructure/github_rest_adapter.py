"""GitHub REST API adapter: metadata, recursive tree listing and the tree discovery strategy."""

from __future__ import annotations

import logging
from contextlib import AsyncExitStack
from datetime import datetime, timezone
from urllib.parse import quote

import httpx

from repo_extractor.domain.entities import (
    Discovery,
    FileNode,
    RepoMetadata,
    RepositoryIdentity,
)
from repo_extractor.domain.exceptions import (
    ContentFetchError,
    GitHubRateLimitError,
    RepoExtractorError,
    RepositoryAccessDeniedError,
    RepositoryNotFoundError,
)
from repo_extractor.domain.ports.content_source import ContentSource
from repo_extractor.services.binary_classifier import should_list

logger = logging.getLogger(__name__)

_GITHUB_API = "https://api.github.com"
USER_AGENT = "repo-extractor/1.0"


class GitHubRestAdapter:
    """Thin client for the GitHub v3 REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = client
        self._token = token
        self._timeout = timeout

    def _headers(self, credential: str | None) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github.v3+json",
            "User-Agent": USER_AGENT,
        }
        token = credential or self._token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def fetch_metadata(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> RepoMetadata:
        """GET /repos/{owner}/{repo} → RepoMetadata."""
        resp = await self._api_get(f"/repos/{identity.owner}/{identity.name}", credential)
        data = resp.json()
        return RepoMetadata(
            owner=identity.owner,
            name=identity.name,
            default_branch=data.get("default_branch") or "",
        )

    async def default_branch(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> str | None:
        """Branch hint taken from the repository metadata."""
        metadata = await self.fetch_metadata(identity, credential)
        return metadata.default_branch or None

    async def fetch_tree(
        self,
        identity: RepositoryIdentity,
        branch: str,
        credential: str | None = None,
    ) -> list[FileNode]:
        """GET /repos/{owner}/{repo}/git/trees/{branch}?recursive=1 → [FileNode]."""
        resp = await self._api_get(
            f"/repos/{identity.owner}/{identity.name}/git/trees/{quote(branch, safe='')}",
            credential,
            params={"recursive": "1"},
        )
        data = resp.json()
        if data.get("truncated"):
            logger.warning(
                "GitHub truncated the tree listing of %s@%s", identity.full_name, branch
            )

        return [
            FileNode(
                path=item["path"],
                type=item.get("type", "blob"),
            )
            for item in data.get("tree", [])
            if item.get("path")
        ]

    async def _api_get(
        self,
        endpoint: str,
        credential: str | None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Perform a GitHub API GET request with error translation."""
        url = f"{_GITHUB_API}{endpoint}"
        try:
            resp = await self._client.get(
                url,
                headers=self._headers(credential),
                params=params,
                timeout=self._timeout,
            )
        except httpx.HTTPError as exc:
            raise ContentFetchError(f"Network error fetching {url}: {exc}") from exc

        if resp.status_code == 200:
            return resp

        if resp.status_code == 404:
            raise RepositoryNotFoundError(
                "Repository or branch not found. "
                "Make sure the URL points to a public repository."
            )

        if resp.status_code == 403:
            remaining = resp.headers.get("x-ratelimit-remaining", "")
            if remaining == "0":
                reset_raw = resp.headers.get("x-ratelimit-reset", "")
                try:
                    reset_str = datetime.fromtimestamp(int(reset_raw), tz=timezone.utc).strftime(
                        "%Y-%m-%d %H:%M:%S UTC"
                    )
                except (ValueError, OSError):
                    reset_str = reset_raw or "unknown"
                raise GitHubRateLimitError(
                    f"GitHub API rate limit exceeded. Resets at {reset_str}. "
                    "Set the GITHUB_TOKEN environment variable to increase the limit."
                )
            raise RepositoryAccessDeniedError("Access denied. The repository may be private.")

        if resp.status_code == 429:
            raise GitHubRateLimitError("GitHub API rate limit exceeded (HTTP 429).")

        raise ContentFetchError(f"GitHub API returned HTTP {resp.status_code} for {url}")


class TreeQueryDiscovery:
    """Discovery via one recursive tree listing: a single, authoritative round trip."""

    name = "tree"

    def __init__(
        self,
        adapter: GitHubRestAdapter,
        source: ContentSource,
        include_binaries: bool = True,
    ) -> None:
        self._adapter = adapter
        self._source = source
        self._include_binaries = include_binaries

    async def discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None = None,
    ) -> Discovery:
        try:
            nodes = await self._adapter.fetch_tree(identity, branch, credential)
        except (RepoExtractorError, ValueError) as exc:
            logger.warning("Tree query failed for %s@%s: %s", identity.full_name, branch, exc)
            return Discovery(strategy=self.name)

        paths = [
            node.path
            for node in nodes
            if node.type == "blob"
            and should_list(node.path, include_binaries=self._include_binaries)
        ]
        return Discovery(strategy=self.name, paths=paths, source=self._source)
