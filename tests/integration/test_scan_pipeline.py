"""End-to-end pipeline runs with a real scanner script and AES decryption."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from src.media_scanner.config import ScannerConfig
from src.media_scanner.scan.report_service import build_report_service
from src.media_scanner.scan.scan_models import EncryptedFile, MediaReference
from tests.mocks.scan import BASE_URL, UpstreamStub, encrypt_attachment, write_script

pytestmark = pytest.mark.integration

MXC = "mxc://example.org/abc123"
EICAR_MARKER = "EICAR"


@pytest.fixture
def scan_log(tmp_path: Path) -> Path:
    return tmp_path / "scanned.log"


@pytest.fixture
def script(tmp_path: Path, scan_log: Path) -> str:
    # Flags files containing the marker, records every scanned path.
    return write_script(
        tmp_path,
        "scan.sh",
        f'echo "$1" >> "{scan_log}"\n'
        f'if grep -q "{EICAR_MARKER}" "$1"; then exit 1; fi\n'
        "exit 0",
    )


@pytest.fixture
def config(temp_root: Path, script: str) -> ScannerConfig:
    return ScannerConfig(base_url=BASE_URL, temp_directory=temp_root, script=script)


@pytest.mark.asyncio
async def test_encrypted_infected_file_is_detected_after_decryption(
    config: ScannerConfig, upstream: UpstreamStub, scan_log: Path, temp_root: Path
) -> None:
    ciphertext, descriptor = encrypt_attachment(f"xx{EICAR_MARKER}xx".encode(), MXC)
    upstream.body = ciphertext
    service = build_report_service(config, transport=upstream.transport)
    encrypted = EncryptedFile(descriptor)

    result = await service.generate_report(encrypted.reference, encrypted)

    assert result.clean is False
    assert result.exit_code == 1
    assert result.info == "***VIRUS DETECTED***"
    assert scan_log.read_text().strip().endswith("unsafeDownloadedDecryptedFile")
    assert list(temp_root.iterdir()) == []


@pytest.mark.asyncio
async def test_concurrent_scans_run_the_script_once(
    config: ScannerConfig, upstream: UpstreamStub, scan_log: Path, temp_root: Path
) -> None:
    service = build_report_service(config, transport=upstream.transport)
    reference = MediaReference("example.org", "abc123")

    results = await asyncio.gather(*(service.generate_report(reference) for _ in range(3)))

    assert {(result.clean, result.info) for result in results} == {(True, results[0].info)}
    assert len(scan_log.read_text().splitlines()) == 1
    assert service.get_report(reference).clean is True
    assert list(temp_root.iterdir()) == []
