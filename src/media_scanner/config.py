"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .scan.scan_errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class ScannerConfig:
    """Settings shared by every scan: where to fetch, where to work, what to run."""

    base_url: str
    temp_directory: Path
    script: str

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (
                ("base_url", self.base_url),
                ("temp_directory", self.temp_directory),
                ("script", self.script),
            )
            if value is None or not str(value).strip()
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required scanner settings: {', '.join(missing)}"
            )
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))
        object.__setattr__(self, "temp_directory", Path(self.temp_directory))


def load_config() -> ScannerConfig:
    """Load configuration from environment and make sure the temp root exists."""
    config = ScannerConfig(
        base_url=os.getenv("SCANNER_BASE_URL", ""),
        temp_directory=os.getenv("SCANNER_TEMP_DIRECTORY", ""),  # type: ignore[arg-type]
        script=os.getenv("SCANNER_SCRIPT", ""),
    )
    config.temp_directory.mkdir(parents=True, exist_ok=True)
    return config
