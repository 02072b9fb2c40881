"""Scoped temporary workspaces for pipeline invocations."""

from __future__ import annotations

import asyncio
import logging
import shutil
import tempfile
from contextlib import asynccontextmanager
from dataclasses import replace
from functools import wraps
from pathlib import Path
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar

from ..config import ScannerConfig

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "av-"

T = TypeVar("T")


async def create_workspace(root: Path) -> Path:
    """Create a uniquely named directory below ``root``."""
    root.mkdir(parents=True, exist_ok=True)
    path = Path(await asyncio.to_thread(tempfile.mkdtemp, prefix=WORKSPACE_PREFIX, dir=root))
    logger.debug("workspace.created", extra={"path": str(path)})
    return path


async def remove_workspace(path: Path) -> None:
    """Remove the workspace tree; failures are logged, never raised."""
    try:
        await asyncio.to_thread(shutil.rmtree, path)
    except FileNotFoundError:
        return
    except OSError:
        logger.exception("workspace.cleanup_failed", extra={"path": str(path)})
    else:
        logger.debug("workspace.removed", extra={"path": str(path)})


@asynccontextmanager
async def temp_workspace(root: Path) -> AsyncIterator[Path]:
    """Yield a fresh workspace and remove it on every exit path."""
    path = await create_workspace(root)
    try:
        yield path
    finally:
        # Shielded so a cancelled caller still waits for the tree to go away.
        await asyncio.shield(remove_workspace(path))


def with_workspace(operation: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
    """Run ``operation`` with ``config.temp_directory`` pointing at a fresh workspace."""

    @wraps(operation)
    async def wrapper(*args: Any, config: ScannerConfig, **kwargs: Any) -> T:
        async with temp_workspace(config.temp_directory) as workspace:
            scoped = replace(config, temp_directory=workspace)
            return await operation(*args, config=scoped, **kwargs)

    return wrapper
