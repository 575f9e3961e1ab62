"""github.com page scraping: default-branch hint and directory-walk discovery.

Directory pages expose their entries two ways: plain ``<a href>`` links
(``/owner/repo/blob/<branch>/<path>`` and ``/owner/repo/tree/<branch>/<path>``)
and, on the React UI, a JSON payload embedded in a ``<script>`` tag whose
``tree.items`` list carries ``path`` and ``contentType``.  Both are read.
"""

from __future__ import annotations

import json
import logging
import re
from collections import deque
from contextlib import AsyncExitStack
from typing import Any, Iterator
from urllib.parse import quote, unquote, urlsplit

import httpx
from lxml import etree, html

from repo_extractor.domain.entities import Discovery, RepositoryIdentity
from repo_extractor.domain.exceptions import DiscoveryError
from repo_extractor.domain.ports.content_source import ContentSource
from repo_extractor.services.binary_classifier import should_list

logger = logging.getLogger(__name__)

_GITHUB_WEB = "https://github.com"
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
)
_DEFAULT_BRANCH_RE = re.compile(r'"defaultBranch"\s*:\s*"([^"\\]+)"')


def _iter_tree_items(obj: Any) -> Iterator[dict[str, Any]]:
    """Yield every ``{"path": ..., "contentType": ...}`` entry in an embedded payload."""
    if isinstance(obj, dict):
        items = obj.get("items")
        if isinstance(items, list):
            for item in items:
                if isinstance(item, dict) and "path" in item and "contentType" in item:
                    yield item
        for value in obj.values():
            if isinstance(value, (dict, list)):
                yield from _iter_tree_items(value)
    elif isinstance(obj, list):
        for value in obj:
            yield from _iter_tree_items(value)


class GitHubPageScraper:
    """Fetch and parse github.com HTML pages."""

    def __init__(self, client: httpx.AsyncClient, timeout: float = 10.0) -> None:
        self._client = client
        self._timeout = timeout

    async def _get_page(self, url: str) -> str:
        try:
            resp = await self._client.get(
                url,
                headers={
                    "User-Agent": BROWSER_USER_AGENT,
                    "Accept": "text/html,application/xhtml+xml,application/xml",
                },
                timeout=self._timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise DiscoveryError(f"Network error fetching {url}: {exc}") from exc
        if resp.status_code != 200:
            raise DiscoveryError(f"github.com returned HTTP {resp.status_code} for {url}")
        return resp.text

    async def default_branch(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> str | None:
        """Branch hint read from the landing page's embedded data."""
        page = await self._get_page(f"{_GITHUB_WEB}/{identity.owner}/{identity.name}")
        match = _DEFAULT_BRANCH_RE.search(page)
        return match.group(1) if match else None

    async def list_directory(
        self, identity: RepositoryIdentity, branch: str, directory: str
    ) -> tuple[list[str], list[str]]:
        """Return ``(files, subdirectories)`` below *directory* on *branch*."""
        url = f"{_GITHUB_WEB}/{identity.owner}/{identity.name}/tree/{quote(branch, safe='/')}"
        if directory:
            url = f"{url}/{quote(directory, safe='/')}"
        page = await self._get_page(url)
        return parse_directory_page(page, identity, branch, directory)


def parse_directory_page(
    page: str, identity: RepositoryIdentity, branch: str, directory: str
) -> tuple[list[str], list[str]]:
    """Extract file and directory paths that live under *directory*.

    Raises :class:`DiscoveryError` when the page cannot be parsed at all.
    """
    try:
        doc = html.fromstring(page)
    except (etree.ParserError, ValueError) as exc:
        raise DiscoveryError(f"Unparseable directory page for {directory or '/'}: {exc}") from exc

    prefix = f"{directory}/" if directory else ""
    link_re = re.compile(
        rf"^/(?i:{re.escape(identity.owner)}/{re.escape(identity.name)})"
        rf"/(?P<kind>blob|tree)/{re.escape(branch)}/(?P<path>.+)$"
    )

    files: dict[str, None] = {}
    dirs: dict[str, None] = {}

    def _add(kind: str, path: str) -> None:
        path = path.strip("/")
        if not path or not path.startswith(prefix) or path == directory:
            return
        (files if kind == "file" else dirs)[path] = None

    for href in doc.xpath("//a/@href"):
        match = link_re.match(unquote(urlsplit(str(href)).path))
        if match:
            _add("file" if match["kind"] == "blob" else "dir", match["path"])

    for script in doc.xpath('//script[@type="application/json"]'):
        try:
            payload = json.loads(script.text_content() or "null")
        except ValueError:
            continue
        for item in _iter_tree_items(payload):
            content_type = item.get("contentType")
            if content_type == "file":
                _add("file", str(item["path"]))
            elif content_type == "directory":
                _add("dir", str(item["path"]))

    return list(files), list(dirs)


class ScrapingDiscovery:
    """Discovery by walking directory pages breadth-first.

    A visited set keyed by directory path and a hard depth bound guarantee
    termination; a page budget caps the total number of requests.  A page
    that fails is logged and its subtree skipped.
    """

    name = "scrape"

    def __init__(
        self,
        scraper: GitHubPageScraper,
        source: ContentSource,
        max_depth: int = 20,
        max_pages: int | None = 500,
        include_binaries: bool = True,
    ) -> None:
        self._scraper = scraper
        self._source = source
        self._max_depth = max_depth
        self._max_pages = max_pages
        self._include_binaries = include_binaries

    async def discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None = None,
    ) -> Discovery:
        files: dict[str, None] = {}
        visited: set[str] = set()
        queue: deque[tuple[str, int]] = deque([("", 0)])
        pages = 0

        while queue:
            directory, depth = queue.popleft()
            if directory in visited or depth > self._max_depth:
                continue
            if self._max_pages is not None and pages >= self._max_pages:
                logger.warning(
                    "Page budget of %d reached while scraping %s", self._max_pages, identity.full_name
                )
                break
            visited.add(directory)
            pages += 1

            try:
                found_files, found_dirs = await self._scraper.list_directory(
                    identity, branch, directory
                )
            except DiscoveryError as exc:
                logger.debug("Skipping %s/%s: %s", identity.full_name, directory, exc)
                continue

            for path in found_files:
                if should_list(path, include_binaries=self._include_binaries):
                    files[path] = None
            for sub in found_dirs:
                if sub not in visited and should_list(sub):
                    queue.append((sub, depth + 1))

        logger.debug("Scraped %d pages of %s", pages, identity.full_name)
        return Discovery(strategy=self.name, paths=list(files), source=self._source)
