"""Clone-and-walk discovery: shallow ``git clone`` into a scratch workspace."""

from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import AsyncExitStack
from pathlib import Path

from git import Git
from git.exc import GitCommandError

from repo_extractor.domain.entities import Discovery, RawContent, RepositoryIdentity
from repo_extractor.domain.exceptions import (
    CloneError,
    ContentFetchError,
    RepoExtractorError,
)
from repo_extractor.infrastructure.workspace import TemporaryWorkspace
from repo_extractor.services.binary_classifier import EXCLUDED_DIRS, should_list

logger = logging.getLogger(__name__)

DEFAULT_CLONE_URL = "https://github.com/{owner}/{name}.git"
_GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def _clone(url: str, target: Path, branch: str | None, timeout: float) -> None:
    """Blocking shallow clone; git is killed once *timeout* seconds pass."""
    git = Git()
    git.update_environment(**_GIT_ENV)
    args = ["--depth=1", "--single-branch"]
    if branch:
        args += ["--branch", branch]
    git.clone(*args, "--", url, str(target), kill_after_timeout=timeout)


def walk_files(root: Path, include_binaries: bool = True) -> list[str]:
    """Return repository-relative ``/``-separated paths, sorted, skipping ``.git``."""
    paths: list[str] = []
    for current, dirs, files in os.walk(root):
        dirs[:] = [d for d in dirs if d not in EXCLUDED_DIRS]
        for name in files:
            full = Path(current, name)
            # Symlinks could point outside the clone.
            if full.is_symlink() or not full.is_file():
                continue
            rel = full.relative_to(root).as_posix()
            if should_list(rel, include_binaries=include_binaries):
                paths.append(rel)
    return sorted(paths)


class FilesystemContentSource:
    """Read files from a local checkout."""

    def __init__(self, root: Path) -> None:
        self._root = root.resolve()

    async def read(self, identity: RepositoryIdentity, branch: str, path: str) -> RawContent:
        target = (self._root / path).resolve()
        if not target.is_relative_to(self._root):
            raise ContentFetchError(f"Path escapes the checkout: {path}")
        try:
            data = await asyncio.to_thread(target.read_bytes)
        except OSError as exc:
            raise ContentFetchError(f"Could not read {path}: {exc}") from exc
        return RawContent(data=data)


class CloneDiscovery:
    """Discovery by shallow clone plus filesystem walk.

    The most complete and most expensive strategy.  On success the
    workspace stays alive for content reads and its release is pushed onto
    the caller's exit stack; on failure it is released before returning.

    git itself is killed after *timeout* seconds.  If the worker thread has
    still not returned *kill_grace* seconds later the clone is reported as
    timed out, but the workspace is only released once that thread is done.
    """

    name = "clone"

    def __init__(
        self,
        workspace_root: str | Path | None = None,
        timeout: float = 120.0,
        include_binaries: bool = True,
        clone_url_template: str = DEFAULT_CLONE_URL,
        kill_grace: float = 5.0,
    ) -> None:
        self._workspace_root = workspace_root
        self._timeout = timeout
        self._include_binaries = include_binaries
        self._url_template = clone_url_template
        self._kill_grace = kill_grace

    def _timed_out(self) -> CloneError:
        return CloneError(f"git clone timed out after {self._timeout:g}s")

    async def _run_clone(self, url: str, target: Path, branch: str | None) -> None:
        started = time.monotonic()
        clone = asyncio.ensure_future(asyncio.to_thread(_clone, url, target, branch, self._timeout))
        try:
            await asyncio.wait_for(asyncio.shield(clone), self._timeout + self._kill_grace)
        except asyncio.TimeoutError:
            await _drain(clone)
            raise self._timed_out() from None
        except asyncio.CancelledError:
            await _drain(clone)
            raise
        except GitCommandError as exc:
            if time.monotonic() - started >= self._timeout:
                raise self._timed_out() from exc
            raise

    async def _clone_into(self, workspace: Path, identity: RepositoryIdentity, branch: str) -> Path:
        url = self._url_template.format(owner=identity.owner, name=identity.name)
        target = workspace / "repo"
        logger.info("Cloning %s (branch %s)", url, branch)
        try:
            await self._run_clone(url, target, branch)
            return target
        except GitCommandError as exc:
            logger.info("Clone of branch %s failed, retrying with the remote default: %s", branch, exc.stderr)

        target = workspace / "repo-default"
        try:
            await self._run_clone(url, target, None)
        except GitCommandError as exc:
            raise CloneError(f"git clone failed: {exc.stderr.strip() if exc.stderr else exc}") from exc
        return target

    async def discover(
        self,
        identity: RepositoryIdentity,
        branch: str,
        stack: AsyncExitStack,
        credential: str | None = None,
    ) -> Discovery:
        async with AsyncExitStack() as local:
            try:
                workspace = await local.enter_async_context(
                    TemporaryWorkspace(root=self._workspace_root)
                )
                checkout = await self._clone_into(workspace, identity, branch)
                paths = await asyncio.to_thread(walk_files, checkout, self._include_binaries)
            except (RepoExtractorError, OSError) as exc:
                logger.warning("Clone discovery failed for %s: %s", identity.full_name, exc)
                return Discovery(strategy=self.name)

            if not paths:
                return Discovery(strategy=self.name)

            # Hand the workspace over to the request; it is removed when the request ends.
            stack.push_async_exit(local.pop_all())
            return Discovery(
                strategy=self.name,
                paths=paths,
                source=FilesystemContentSource(checkout),
            )


async def _drain(clone: asyncio.Future[None]) -> None:
    """Wait for an abandoned clone thread so nothing writes into a released workspace."""
    try:
        await clone
    except Exception as exc:  # noqa: BLE001
        logger.debug("Abandoned clone finished with %s", exc)
