"""HTTP routes for scanning and scanned downloads."""

from __future__ import annotations

import asyncio
import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, JSONResponse
from starlette.types import Receive, Scope, Send

from .report_service import ReportService
from .scan_models import EncryptedFile, MediaReference, ScannedFile
from .scan_schemas import EncryptedRequest, ScanReportResponse, ScanVerdictResponse
from .workspace import remove_workspace

router = APIRouter(prefix="/_matrix/media_proxy/unstable", tags=["scan"])
logger = logging.getLogger(__name__)

DEFAULT_MEDIA_TYPE = "application/octet-stream"


def get_report_service(request: Request) -> ReportService:
    """Fetch report service from application state."""
    try:
        return request.app.state.report_service  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover - wiring error
        raise RuntimeError("ReportService is not configured") from exc


class DeliveryFileResponse(FileResponse):
    """Stream a scanned file and remove its delivery workspace however sending ends."""

    def __init__(self, scanned: ScannedFile) -> None:
        super().__init__(
            path=scanned.path,
            headers=dict(scanned.headers),
            media_type=scanned.headers.get("content-type", DEFAULT_MEDIA_TYPE),
        )
        self.workspace = scanned.workspace

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await super().__call__(scope, receive, send)
        finally:
            await asyncio.shield(remove_workspace(self.workspace))


async def _download(
    service: ReportService,
    reference: MediaReference,
    encrypted_file: EncryptedFile | None = None,
) -> FileResponse:
    scanned = await service.scanned_download(reference, encrypted_file)
    logger.info("scan.delivery.sending", extra={"path": str(scanned.path)})
    return DeliveryFileResponse(scanned)


@router.get("/download/{domain}/{media_id}")
async def download(
    domain: str,
    media_id: str,
    service: ReportService = Depends(get_report_service),
) -> FileResponse:
    """Scan the media and stream it back if clean."""
    return await _download(service, MediaReference(domain, media_id))


@router.post("/download_encrypted")
async def download_encrypted(
    payload: EncryptedRequest,
    service: ReportService = Depends(get_report_service),
) -> FileResponse:
    """Scan an encrypted attachment and stream the ciphertext back if clean."""
    encrypted_file = payload.file.to_domain()
    return await _download(service, encrypted_file.reference, encrypted_file)


@router.get("/scan/{domain}/{media_id}", response_model=ScanVerdictResponse)
async def scan(
    domain: str,
    media_id: str,
    service: ReportService = Depends(get_report_service),
) -> ScanVerdictResponse:
    result = await service.generate_report(MediaReference(domain, media_id))
    return ScanVerdictResponse(clean=result.clean, info=result.info)


@router.post("/scan_encrypted", response_model=ScanVerdictResponse)
async def scan_encrypted(
    payload: EncryptedRequest,
    service: ReportService = Depends(get_report_service),
) -> ScanVerdictResponse:
    encrypted_file = payload.file.to_domain()
    result = await service.generate_report(encrypted_file.reference, encrypted_file)
    return ScanVerdictResponse(clean=result.clean, info=result.info)


@router.get("/scan_report/{domain}/{media_id}", response_model=ScanReportResponse)
async def scan_report(
    domain: str,
    media_id: str,
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    """Return the cached verdict only; never triggers a scan."""
    report = service.get_report(MediaReference(domain, media_id))
    return JSONResponse(report.as_dict())


@router.post("/scan_report_encrypted", response_model=ScanReportResponse)
async def scan_report_encrypted(
    payload: EncryptedRequest,
    service: ReportService = Depends(get_report_service),
) -> JSONResponse:
    encrypted_file = payload.file.to_domain()
    report = service.get_report(encrypted_file.reference, encrypted_file)
    return JSONResponse(report.as_dict())
