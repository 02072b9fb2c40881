from __future__ import annotations

from pathlib import Path

import pytest

from src.media_scanner.config import ScannerConfig
from tests.mocks.scan import BASE_URL, ScannerStub, UpstreamStub


@pytest.fixture
def temp_root(tmp_path: Path) -> Path:
    root = tmp_path / "scans"
    root.mkdir()
    return root


@pytest.fixture
def config(temp_root: Path) -> ScannerConfig:
    return ScannerConfig(base_url=BASE_URL, temp_directory=temp_root, script="/usr/bin/scan")


@pytest.fixture
def upstream() -> UpstreamStub:
    return UpstreamStub()


@pytest.fixture
def scanner() -> ScannerStub:
    return ScannerStub()
