"""raw.githubusercontent.com transport: file content and branch probes."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from repo_extractor.domain.entities import RawContent, RepositoryIdentity
from repo_extractor.domain.exceptions import ContentFetchError

logger = logging.getLogger(__name__)

_RAW_BASE = "https://raw.githubusercontent.com"
USER_AGENT = "repo-extractor/1.0"


def raw_url(identity: RepositoryIdentity, branch: str, path: str) -> str:
    return (
        f"{_RAW_BASE}/{identity.owner}/{identity.name}/"
        f"{quote(branch, safe='/')}/{quote(path, safe='/')}"
    )


class RawContentSource:
    """Read files straight from the raw-content host (not API rate limited)."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        content_timeout: float = 8.0,
        probe_timeout: float = 5.0,
    ) -> None:
        self._client = client
        self._content_timeout = content_timeout
        self._probe_timeout = probe_timeout

    async def read(self, identity: RepositoryIdentity, branch: str, path: str) -> RawContent:
        url = raw_url(identity, branch, path)
        try:
            resp = await self._client.get(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._content_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            raise ContentFetchError(f"Network error fetching {url}: {exc}") from exc

        if resp.status_code == 200:
            return RawContent(data=resp.content, media_type=resp.headers.get("content-type"))

        if resp.status_code == 404:
            raise ContentFetchError(f"File not found: {path}")

        raise ContentFetchError(
            f"raw.githubusercontent.com returned HTTP {resp.status_code} for {path}"
        )

    async def exists(self, identity: RepositoryIdentity, branch: str, path: str) -> bool:
        """HEAD probe with the short timeout; network errors count as "absent"."""
        url = raw_url(identity, branch, path)
        try:
            resp = await self._client.head(
                url,
                headers={"User-Agent": USER_AGENT},
                timeout=self._probe_timeout,
                follow_redirects=True,
            )
        except httpx.HTTPError as exc:
            logger.debug("Probe of %s failed: %s", url, exc)
            return False
        return resp.status_code == 200
