"""Dependency wiring helpers."""

from fastapi import FastAPI

from .api.errors import register_error_handlers
from .config import ScannerConfig
from .scan.report_service import ReportService, build_report_service
from .scan.scan_api import router as scan_router


def include_routers(
    app: FastAPI,
    config: ScannerConfig,
    service: ReportService | None = None,
) -> None:
    """Mount routers and attach the report service."""
    report_service = service or build_report_service(config)

    app.state.config = config
    app.state.report_service = report_service

    register_error_handlers(app)
    app.include_router(scan_router)
