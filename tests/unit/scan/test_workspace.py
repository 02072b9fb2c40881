from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from src.media_scanner.config import ScannerConfig
from src.media_scanner.scan import workspace as workspace_module
from src.media_scanner.scan.workspace import temp_workspace, with_workspace

pytestmark = pytest.mark.unit


@pytest.mark.asyncio
async def test_workspace_removed_after_success(temp_root: Path) -> None:
    async with temp_workspace(temp_root) as path:
        assert path.parent == temp_root
        assert path.name.startswith("av-")
        (path / "file").write_bytes(b"data")

    assert not path.exists()
    assert list(temp_root.iterdir()) == []


@pytest.mark.asyncio
async def test_workspace_removed_after_error(temp_root: Path) -> None:
    with pytest.raises(RuntimeError, match="boom"):
        async with temp_workspace(temp_root) as path:
            (path / "file").write_bytes(b"data")
            raise RuntimeError("boom")

    assert list(temp_root.iterdir()) == []


@pytest.mark.asyncio
async def test_workspace_removed_after_cancellation(temp_root: Path) -> None:
    entered = asyncio.Event()

    async def hang() -> None:
        async with temp_workspace(temp_root):
            entered.set()
            await asyncio.Event().wait()

    task = asyncio.create_task(hang())
    await entered.wait()
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert list(temp_root.iterdir()) == []


@pytest.mark.asyncio
async def test_workspaces_are_unique(temp_root: Path) -> None:
    async with temp_workspace(temp_root) as first, temp_workspace(temp_root) as second:
        assert first != second


@pytest.mark.asyncio
async def test_cleanup_failure_does_not_mask_error(
    temp_root: Path, monkeypatch: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
) -> None:
    def failing_rmtree(path: Path) -> None:
        raise PermissionError("read-only")

    monkeypatch.setattr(workspace_module.shutil, "rmtree", failing_rmtree)

    with caplog.at_level(logging.ERROR), pytest.raises(ValueError, match="original"):
        async with temp_workspace(temp_root):
            raise ValueError("original")

    assert "workspace.cleanup_failed" in caplog.text


@pytest.mark.asyncio
async def test_with_workspace_substitutes_temp_directory(config: ScannerConfig) -> None:
    seen: list[Path] = []

    @with_workspace
    async def operation(value: str, *, config: ScannerConfig) -> str:
        seen.append(config.temp_directory)
        assert config.temp_directory.is_dir()
        assert config.script == "/usr/bin/scan"
        return value

    assert await operation("x", config=config) == "x"
    assert seen[0].parent == config.temp_directory
    assert not seen[0].exists()
