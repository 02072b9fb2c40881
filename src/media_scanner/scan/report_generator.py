"""Fetch -> decrypt -> scan pipeline producing a single verdict."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from typing import Callable

from ..config import ScannerConfig
from .decryption import decrypt_file
from .media_fetcher import MediaFetcher
from .result_cache import ResultCache
from .scan_errors import DecryptionError
from .scan_keys import build_download_url, effective_reference, result_key
from .scan_models import EncryptedFile, MediaReference, ScanResult
from .scanner_command import ScannerCommand

logger = logging.getLogger(__name__)

DOWNLOADED_FILE = "downloadedFile"
DECRYPTED_FILE = "unsafeDownloadedDecryptedFile"

Decryptor = Callable[..., None]


@dataclass(slots=True)
class ReportGenerator:
    """Produce a scan result for one input inside the configured workspace.

    ``config.temp_directory`` is expected to be a workspace owned by this
    invocation; both the downloaded and the decrypted file are written there.
    """

    fetcher: MediaFetcher
    scanner: ScannerCommand
    cache: ResultCache
    decryptor: Decryptor = decrypt_file
    log: logging.Logger = field(default_factory=lambda: logger)

    async def generate(
        self,
        reference: MediaReference,
        encrypted_file: EncryptedFile | None = None,
        *,
        config: ScannerConfig,
    ) -> ScanResult:
        reference = effective_reference(reference, encrypted_file)
        http_url = build_download_url(config.base_url, reference)
        file_path = config.temp_directory / DOWNLOADED_FILE

        self.log.info(
            "scan.fetch.started",
            extra={"url": http_url, "path": str(file_path)},
        )
        fetched = await self.fetcher.fetch(http_url, file_path)

        key = result_key(http_url, encrypted_file)
        cached = self.cache.get(key)
        if cached is not None:
            self.log.info("scan.result.cached", extra={"url": http_url})
            return replace(cached, file_path=fetched.path, headers=fetched.headers)

        scan_path = file_path
        if encrypted_file is not None and encrypted_file.has_key:
            scan_path = config.temp_directory / DECRYPTED_FILE
            self.log.info(
                "scan.decrypt.started",
                extra={"source": str(file_path), "target": str(scan_path)},
            )
            try:
                await asyncio.to_thread(
                    self.decryptor, file_path, scan_path, encrypted_file.content
                )
            except Exception as exc:
                self.log.error(
                    "scan.decrypt.failed",
                    extra={"url": http_url, "error": str(exc)},
                )
                raise DecryptionError("Failed to decrypt file") from exc

        verdict = await self.scanner.scan(config.script, scan_path)
        result = ScanResult.from_verdict(
            verdict, file_path=fetched.path, headers=fetched.headers
        )
        self.cache.set(key, result)

        self.log.info(
            "scan.result.stored",
            extra={"url": http_url, "clean": result.clean, "exit_code": result.exit_code},
        )
        return result
