import asyncio
import time
from contextlib import AsyncExitStack
from pathlib import Path

import pytest
from git import Actor, Repo
from git.exc import GitCommandError

from repo_extractor.domain.exceptions import ContentFetchError
from repo_extractor.infrastructure.git_clone import (
    CloneDiscovery,
    FilesystemContentSource,
    walk_files,
)

AUTHOR = Actor("Test Author", "author@example.com")


@pytest.fixture
def remote(tmp_path: Path) -> Path:
    """A local repository standing in for github.com/acme/widgets."""
    path = tmp_path / "remotes" / "acme" / "widgets"
    path.mkdir(parents=True)
    repo = Repo.init(path)
    (path / "README.md").write_text("# Widgets\n", encoding="utf-8")
    (path / "src").mkdir()
    (path / "src" / "app.py").write_text("print('hi')\n", encoding="utf-8")
    (path / "assets").mkdir()
    (path / "assets" / "logo.png").write_bytes(b"\x89PNG\r\n")
    repo.index.add(["README.md", "src/app.py", "assets/logo.png"])
    repo.index.commit("initial", author=AUTHOR, committer=AUTHOR)
    repo.git.branch("-M", "main")
    return path


def _strategy(tmp_path: Path, **kwargs) -> CloneDiscovery:
    return CloneDiscovery(
        workspace_root=tmp_path / "work",
        clone_url_template=f"file://{tmp_path}/remotes/{{owner}}/{{name}}",
        **kwargs,
    )


def test_walk_files_sorted_and_skips_git(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / ".git" / "HEAD").write_text("ref", encoding="utf-8")
    (tmp_path / "b.txt").write_text("b", encoding="utf-8")
    (tmp_path / "a").mkdir()
    (tmp_path / "a" / "z.py").write_text("z", encoding="utf-8")
    (tmp_path / "pic.jpg").write_bytes(b"\xff\xd8")

    assert walk_files(tmp_path) == ["a/z.py", "b.txt", "pic.jpg"]
    assert walk_files(tmp_path, include_binaries=False) == ["a/z.py", "b.txt"]


def test_walk_files_ignores_symlinks(tmp_path: Path) -> None:
    outside = tmp_path / "outside.txt"
    outside.write_text("secret", encoding="utf-8")
    root = tmp_path / "repo"
    root.mkdir()
    (root / "real.txt").write_text("ok", encoding="utf-8")
    (root / "link.txt").symlink_to(outside)

    assert walk_files(root) == ["real.txt"]


@pytest.mark.asyncio
async def test_filesystem_source_refuses_escaping_paths(tmp_path: Path, identity) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    (root / "ok.txt").write_text("fine", encoding="utf-8")
    source = FilesystemContentSource(root)

    assert (await source.read(identity, "main", "ok.txt")).data == b"fine"
    with pytest.raises(ContentFetchError):
        await source.read(identity, "main", "../outside.txt")
    with pytest.raises(ContentFetchError):
        await source.read(identity, "main", "missing.txt")


@pytest.mark.asyncio
async def test_clone_discovery_lists_and_reads_until_stack_closes(
    tmp_path: Path, remote: Path, identity
) -> None:
    strategy = _strategy(tmp_path)

    async with AsyncExitStack() as stack:
        found = await strategy.discover(identity, "main", stack)
        assert found.strategy == "clone"
        assert found.paths == ["README.md", "assets/logo.png", "src/app.py"]
        raw = await found.source.read(identity, "main", "src/app.py")
        assert raw.data == b"print('hi')\n"
        assert any((tmp_path / "work").iterdir())

    assert list((tmp_path / "work").iterdir()) == []


@pytest.mark.asyncio
async def test_missing_branch_falls_back_to_remote_default(
    tmp_path: Path, remote: Path, identity
) -> None:
    async with AsyncExitStack() as stack:
        found = await _strategy(tmp_path).discover(identity, "does-not-exist", stack)
        assert "README.md" in found.paths


@pytest.mark.asyncio
async def test_clone_failure_returns_empty_and_cleans_up(tmp_path: Path, identity) -> None:
    strategy = _strategy(tmp_path)
    stack = AsyncExitStack()

    found = await strategy.discover(identity, "main", stack)

    assert not found
    assert found.paths == []
    assert list((tmp_path / "work").iterdir()) == []
    await stack.aclose()


@pytest.mark.asyncio
async def test_timed_out_clone_finishes_before_workspace_is_removed(
    tmp_path: Path, identity, monkeypatch, caplog
) -> None:
    def slow_clone(url: str, target: Path, branch: str | None, timeout: float) -> None:
        time.sleep(0.5)
        target.mkdir(parents=True, exist_ok=True)
        (target / "late.txt").write_text("still transferring", encoding="utf-8")

    monkeypatch.setattr("repo_extractor.infrastructure.git_clone._clone", slow_clone)
    strategy = _strategy(tmp_path, timeout=0.1, kill_grace=0.1)

    async with AsyncExitStack() as stack:
        found = await strategy.discover(identity, "main", stack)

    assert not found
    assert list((tmp_path / "work").iterdir()) == []
    await asyncio.sleep(0.6)
    assert list((tmp_path / "work").iterdir()) == []
    assert "timed out after 0.1s" in caplog.text


@pytest.mark.asyncio
async def test_killed_clone_is_reported_as_timeout_without_retry(
    tmp_path: Path, identity, monkeypatch, caplog
) -> None:
    attempts: list[str | None] = []

    def killed_clone(url: str, target: Path, branch: str | None, timeout: float) -> None:
        attempts.append(branch)
        time.sleep(timeout)
        raise GitCommandError(["git", "clone"], -9, "Timeout: the command did not complete")

    monkeypatch.setattr("repo_extractor.infrastructure.git_clone._clone", killed_clone)

    async with AsyncExitStack() as stack:
        found = await _strategy(tmp_path, timeout=0.05).discover(identity, "main", stack)

    assert not found
    assert attempts == ["main"]
    assert "timed out after 0.05s" in caplog.text
    assert list((tmp_path / "work").iterdir()) == []
