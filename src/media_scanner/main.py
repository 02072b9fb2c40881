"""FastAPI application entry point."""

from fastapi import FastAPI

from .config import ScannerConfig, load_config
from .dependencies import include_routers
from .logging import configure_logging
from .scan.report_service import ReportService


def create_app(
    config: ScannerConfig | None = None,
    service: ReportService | None = None,
) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    configure_logging()
    cfg = config or load_config()
    app = FastAPI(title="Media Scanner")
    include_routers(app, cfg, service)
    return app
