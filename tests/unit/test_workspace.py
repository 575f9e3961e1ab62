import asyncio
import os
import stat
import time
from pathlib import Path

import pytest

from repo_extractor.domain.exceptions import WorkspaceError
from repo_extractor.infrastructure.workspace import TemporaryWorkspace


@pytest.mark.asyncio
async def test_workspace_is_created_and_removed(tmp_path: Path) -> None:
    async with TemporaryWorkspace(root=tmp_path) as path:
        assert path.is_dir()
        assert path.parent == tmp_path
        assert path.name.startswith("repo-extractor-")
        (path / "file.txt").write_text("x", encoding="utf-8")

    assert not path.exists()


@pytest.mark.asyncio
async def test_workspace_removed_on_error(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError):
        async with TemporaryWorkspace(root=tmp_path) as path:
            raise RuntimeError("clone blew up")

    assert not path.exists()


@pytest.mark.asyncio
async def test_concurrent_workspaces_get_distinct_names(tmp_path: Path) -> None:
    async def allocate() -> Path:
        async with TemporaryWorkspace(root=tmp_path) as path:
            await asyncio.sleep(0.01)
            return path

    paths = await asyncio.gather(*(allocate() for _ in range(10)))
    assert len(set(paths)) == 10


@pytest.mark.asyncio
async def test_read_only_files_are_removed(tmp_path: Path) -> None:
    async with TemporaryWorkspace(root=tmp_path) as path:
        pack = path / "pack.idx"
        pack.write_bytes(b"data")
        os.chmod(pack, stat.S_IREAD)

    assert not path.exists()


@pytest.mark.asyncio
async def test_removal_failure_is_logged_not_raised(tmp_path: Path, monkeypatch, caplog) -> None:
    def broken_rmtree(*args, **kwargs):
        raise PermissionError("busy")

    monkeypatch.setattr("repo_extractor.infrastructure.workspace.shutil.rmtree", broken_rmtree)

    async with TemporaryWorkspace(root=tmp_path):
        pass

    assert "Failed to remove workspace" in caplog.text


@pytest.mark.asyncio
async def test_unusable_root_raises_workspace_error(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")

    with pytest.raises(WorkspaceError):
        async with TemporaryWorkspace(root=blocker):
            pass


@pytest.mark.asyncio
async def test_cancelled_release_still_removes_and_logs(tmp_path: Path, monkeypatch, caplog) -> None:
    def slow_broken_rmtree(*args, **kwargs):
        time.sleep(0.2)
        raise PermissionError("busy")

    monkeypatch.setattr("repo_extractor.infrastructure.workspace.shutil.rmtree", slow_broken_rmtree)
    workspace = TemporaryWorkspace(root=tmp_path)
    await workspace.__aenter__()

    release = asyncio.create_task(workspace.release())
    await asyncio.sleep(0.05)
    release.cancel()
    with pytest.raises(asyncio.CancelledError):
        await release

    await asyncio.sleep(0.4)
    assert "Failed to remove workspace" in caplog.text
