"""Port: content source, the transport behind one discovery result."""

from __future__ import annotations

from typing import Protocol

from repo_extractor.domain.entities import RawContent, RepositoryIdentity


class ContentSource(Protocol):
    """Abstract contract for reading the bytes of one repository path."""

    async def read(self, identity: RepositoryIdentity, branch: str, path: str) -> RawContent:
        """Return the raw content of *path*; raise ``ContentFetchError`` on failure."""
        ...
