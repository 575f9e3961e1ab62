"""Scoped temporary workspace for the clone strategy."""

from __future__ import annotations

import asyncio
import functools
import logging
import os
import shutil
import stat
import sys
import tempfile
import time
from pathlib import Path
from types import TracebackType
from typing import Any, Callable

from repo_extractor.domain.exceptions import WorkspaceError

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "repo-extractor-"


def _clear_readonly(func: Callable[..., Any], path: str, _exc_info: Any) -> None:
    """``rmtree`` error hook: git marks pack files read-only."""
    os.chmod(path, stat.S_IWRITE)
    func(path)


def _remove_tree(path: Path) -> None:
    if sys.version_info >= (3, 12):
        shutil.rmtree(path, onexc=_clear_readonly)
    else:
        shutil.rmtree(path, onerror=_clear_readonly)


def _report_removal(path: Path, removal: asyncio.Future[None]) -> None:
    """Done-callback of a removal; runs even when the awaiting request was cancelled."""
    if removal.cancelled():
        return
    exc = removal.exception()
    if exc is not None:
        logger.warning("Failed to remove workspace %s: %s", path, exc)
    else:
        logger.debug("Removed workspace %s", path)


class TemporaryWorkspace:
    """Uniquely named scratch directory, removed on every exit path.

    The name combines a nanosecond timestamp with ``mkdtemp``'s random
    suffix, so concurrent requests never collide.  Removal failures are
    logged, never raised.
    """

    def __init__(self, root: str | Path | None = None, prefix: str = DEFAULT_PREFIX) -> None:
        self._root = Path(root) if root else None
        self._prefix = prefix
        self.path: Path | None = None

    async def __aenter__(self) -> Path:
        try:
            if self._root is not None:
                self._root.mkdir(parents=True, exist_ok=True)
            created = tempfile.mkdtemp(
                prefix=f"{self._prefix}{time.time_ns()}-",
                dir=str(self._root) if self._root is not None else None,
            )
        except OSError as exc:
            raise WorkspaceError(f"Could not create temporary workspace: {exc}") from exc
        self.path = Path(created)
        logger.debug("Allocated workspace %s", self.path)
        return self.path

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.release()

    async def release(self) -> None:
        if self.path is None:
            return
        path, self.path = self.path, None
        removal = asyncio.ensure_future(asyncio.to_thread(_remove_tree, path))
        removal.add_done_callback(functools.partial(_report_removal, path))
        # asyncio.wait never cancels the removal, so a cancelled request still finishes it.
        await asyncio.wait({removal})
