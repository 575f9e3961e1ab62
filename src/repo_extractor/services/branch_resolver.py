"""Branch resolution: picks the one branch every fetch of an acquisition uses."""

from __future__ import annotations

import logging
from typing import Sequence

from repo_extractor.domain.entities import RepositoryIdentity
from repo_extractor.domain.ports.discovery_strategy import BranchHintSource, BranchProbe

logger = logging.getLogger(__name__)

DEFAULT_CANDIDATES: tuple[str, ...] = ("main", "master", "develop")
DEFAULT_MARKER_FILE = "README.md"


class BranchResolver:
    """Resolve the branch to read from, never failing.

    Order: default-branch hints (API metadata, landing page), then a marker
    file probe per candidate, then the first candidate unconditionally.
    """

    def __init__(
        self,
        hints: Sequence[BranchHintSource],
        probe: BranchProbe | None,
        candidates: Sequence[str] = DEFAULT_CANDIDATES,
        marker_file: str = DEFAULT_MARKER_FILE,
    ) -> None:
        if not candidates:
            raise ValueError("At least one branch candidate is required.")
        self._hints = list(hints)
        self._probe = probe
        self._candidates = list(candidates)
        self._marker = marker_file

    @property
    def fallback(self) -> str:
        return self._candidates[0]

    async def resolve(
        self, identity: RepositoryIdentity, credential: str | None = None
    ) -> str:
        for hint in self._hints:
            try:
                branch = await hint.default_branch(identity, credential)
            except Exception:
                logger.debug(
                    "Branch hint %s failed for %s",
                    type(hint).__name__,
                    identity.full_name,
                    exc_info=True,
                )
                continue
            if branch:
                logger.info("Resolved %s to default branch %r", identity.full_name, branch)
                return branch

        if self._probe is not None:
            for candidate in self._candidates:
                try:
                    found = await self._probe.exists(identity, candidate, self._marker)
                except Exception:
                    logger.debug(
                        "Probe of %s@%s failed", identity.full_name, candidate, exc_info=True
                    )
                    continue
                if found:
                    logger.info("Resolved %s to probed branch %r", identity.full_name, candidate)
                    return candidate

        logger.warning(
            "Could not confirm a branch for %s, falling back to %r",
            identity.full_name,
            self.fallback,
        )
        return self.fallback
