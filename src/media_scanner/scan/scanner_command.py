"""External scanner invocation."""

from __future__ import annotations

import asyncio
import logging
import shlex
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .scan_models import ScanVerdict

logger = logging.getLogger(__name__)

INFECTED_INFO = "***VIRUS DETECTED***"


@dataclass(slots=True)
class ScannerCommand:
    """Run ``script <file>``; exit code 0 means clean, anything else means not."""

    log: logging.Logger = field(default_factory=lambda: logger)

    async def scan(self, script: str, file_path: Path) -> ScanVerdict:
        argv = [*shlex.split(script), str(file_path)]
        self.log.info("scan.command.started", extra={"command": shlex.join(argv)})
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        stdout, stderr = await process.communicate()
        exit_code = process.returncode if process.returncode is not None else -1

        if exit_code == 0:
            info = f"File clean at {datetime.now(timezone.utc).isoformat()}"
        else:
            info = INFECTED_INFO
        self.log.info(
            "scan.command.finished",
            extra={
                "exit_code": exit_code,
                "stdout": stdout.decode("utf-8", "replace").strip(),
                "stderr": stderr.decode("utf-8", "replace").strip(),
            },
        )
        return ScanVerdict(clean=exit_code == 0, info=info, exit_code=exit_code)
