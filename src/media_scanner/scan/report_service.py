"""Public entry points: cached reports, coalesced scans and scanned downloads."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from ..api.errors import forbidden_error
from ..config import ScannerConfig
from .coalescer import RequestCoalescer
from .delivery import DELIVERED_FILE, link_or_copy, whitelist_headers
from .media_fetcher import MediaFetcher
from .report_generator import ReportGenerator
from .result_cache import InMemoryResultCache, ResultCache
from .scan_keys import build_download_url, effective_reference, result_key
from .scan_models import EncryptedFile, MediaReference, ScannedFile, ScanReport, ScanResult
from .scanner_command import ScannerCommand
from .workspace import create_workspace, remove_workspace, with_workspace

logger = logging.getLogger(__name__)

DELIVERY_ATTEMPTS = 2


@dataclass(slots=True)
class ReportService:
    """Coordinate the result cache, request coalescing and workspaces.

    Every distinct input (download URL plus encrypted descriptor) is fetched
    and scanned at most once at a time; concurrent callers share the outcome.
    """

    config: ScannerConfig
    generator: ReportGenerator
    cache: ResultCache
    log: logging.Logger = field(default_factory=lambda: logger)
    _coalescer: RequestCoalescer[ScanResult] = field(init=False)
    _handoffs: dict[str, list[Path]] = field(init=False, default_factory=dict)

    def __post_init__(self) -> None:
        self._coalescer = RequestCoalescer(
            self._coalesce_key, with_workspace(self._run_pipeline)
        )

    def result_key(
        self, reference: MediaReference, encrypted_file: EncryptedFile | None = None
    ) -> str:
        effective = effective_reference(reference, encrypted_file)
        http_url = build_download_url(self.config.base_url, effective)
        return result_key(http_url, encrypted_file)

    def get_report(
        self, reference: MediaReference, encrypted_file: EncryptedFile | None = None
    ) -> ScanReport:
        """Return the cached verdict without fetching or scanning anything."""
        effective = effective_reference(reference, encrypted_file)
        cached = self.cache.get(self.result_key(reference, encrypted_file))
        if cached is None:
            self.log.info(
                "scan.report.not_scanned",
                extra={"domain": effective.domain, "media_id": effective.media_id},
            )
            return ScanReport(scanned=False)

        self.log.info(
            "scan.report.returned",
            extra={
                "domain": effective.domain,
                "media_id": effective.media_id,
                "clean": cached.clean,
            },
        )
        return ScanReport(scanned=True, clean=cached.clean, info=cached.info)

    async def generate_report(
        self, reference: MediaReference, encrypted_file: EncryptedFile | None = None
    ) -> ScanResult:
        """Fetch, decrypt and scan, sharing one execution per input."""
        return await self._coalescer.run(reference, encrypted_file, config=self.config)

    async def scanned_download(
        self, reference: MediaReference, encrypted_file: EncryptedFile | None = None
    ) -> ScannedFile:
        """Scan the input and return a delivery-owned copy of the clean file.

        The caller owns ``ScannedFile.workspace`` and must remove it once the
        file has been sent. Unclean verdicts raise a 403 :class:`ApiError`.
        """
        key = self.result_key(reference, encrypted_file)
        workspace = await create_workspace(self.config.temp_directory)
        target = workspace / DELIVERED_FILE
        try:
            for attempt in range(1, DELIVERY_ATTEMPTS + 1):
                self._handoffs.setdefault(key, []).append(target)
                result = await self.generate_report(reference, encrypted_file)
                if not result.clean:
                    raise forbidden_error(result.info)
                if target.exists():
                    break
                # Joined an execution that had already handed its file out.
                self.log.warning(
                    "scan.delivery.handoff_missed",
                    extra={"attempt": attempt, "workspace": str(workspace)},
                )
            else:
                raise RuntimeError("Scanned file was not handed over to the delivery workspace")
        except BaseException:
            self._discard_handoff(key, target)
            await remove_workspace(workspace)
            raise

        self._discard_handoff(key, target)
        self.log.info("scan.delivery.ready", extra={"path": str(target)})
        return ScannedFile(
            path=target,
            headers=whitelist_headers(result.headers),
            workspace=workspace,
        )

    def clear_report_cache(self) -> None:
        self.cache.clear()
        self.log.info("scan.cache.cleared")

    def in_flight(
        self, reference: MediaReference, encrypted_file: EncryptedFile | None = None
    ) -> bool:
        return self._coalescer.in_flight(self.result_key(reference, encrypted_file))

    def _coalesce_key(
        self,
        reference: MediaReference,
        encrypted_file: EncryptedFile | None = None,
        *,
        config: ScannerConfig,
    ) -> str:
        return self.result_key(reference, encrypted_file)

    async def _run_pipeline(
        self,
        reference: MediaReference,
        encrypted_file: EncryptedFile | None = None,
        *,
        config: ScannerConfig,
    ) -> ScanResult:
        key = self.result_key(reference, encrypted_file)
        try:
            result = await self.generator.generate(reference, encrypted_file, config=config)
        finally:
            targets = self._handoffs.pop(key, [])

        # Still inside the workspace, so the fetched file exists.
        if result.clean and result.file_path is not None:
            for target in targets:
                if not target.parent.exists():
                    continue
                try:
                    await asyncio.to_thread(link_or_copy, result.file_path, target)
                except OSError:
                    # The delivery went away mid hand-off; it resubmits or is gone.
                    self.log.warning(
                        "scan.delivery.handoff_failed",
                        extra={"target": str(target)},
                        exc_info=True,
                    )
        return result

    def _discard_handoff(self, key: str, target: Path) -> None:
        targets = self._handoffs.get(key)
        if not targets:
            return
        remaining = [path for path in targets if path != target]
        if remaining:
            self._handoffs[key] = remaining
        else:
            del self._handoffs[key]


def build_report_service(
    config: ScannerConfig,
    *,
    cache: ResultCache | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    scanner: ScannerCommand | None = None,
) -> ReportService:
    """Wire a :class:`ReportService` with default collaborators."""
    result_cache = cache if cache is not None else InMemoryResultCache()
    generator = ReportGenerator(
        fetcher=MediaFetcher(transport=transport),
        scanner=scanner or ScannerCommand(),
        cache=result_cache,
    )
    return ReportService(config=config, generator=generator, cache=result_cache)
