"""Port: discovery strategy, defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from contextlib import AsyncExitStack
from typing import Protocol

from repo_extractor.domain.entities import Discovery, RepositoryIdentity


class DiscoveryStrategy(Protocol):
    """Abstract contract for producing the candidate file list of a repository.

    Implementations return an empty :class:`Discovery` instead of raising when
    they cannot list the repository, so the next strategy can be tried.  A
    strategy that keeps a resource alive for content fetching registers its
    release on *stack*.
    """

    name: str

    async def discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None = None,
    ) -> Discovery:
        """Return the ordered candidate paths and the source able to read them."""
        ...


class BranchHintSource(Protocol):
    """Anything that can tell which branch a repository marks as default."""

    async def default_branch(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> str | None:
        """Return the default branch name, or ``None`` when unknown."""
        ...


class BranchProbe(Protocol):
    """Cheap existence check used to confirm a candidate branch."""

    async def exists(self, identity: RepositoryIdentity, branch: str, path: str) -> bool:
        """Return *True* if *path* resolves on *branch*."""
        ...
