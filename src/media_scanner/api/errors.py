"""Reusable error primitives for API exception handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..scan.scan_errors import DecryptionError, UpstreamFetchError


@dataclass(slots=True)
class ApiError(Exception):
    """Structured application-level error for HTTP handlers."""

    status_code: int
    code: str
    message: str
    headers: Mapping[str, str] | None = None

    def to_response(self) -> JSONResponse:
        """Materialise the error into a ``JSONResponse`` instance."""

        return JSONResponse(
            status_code=self.status_code,
            content={"error": {"code": self.code, "message": self.message}},
            headers=dict(self.headers or {}),
        )


async def api_error_handler(_: Request, exc: ApiError) -> JSONResponse:
    """Convert :class:`ApiError` exceptions into JSON payloads."""

    return exc.to_response()


async def upstream_fetch_error_handler(_: Request, exc: UpstreamFetchError) -> JSONResponse:
    return bad_gateway_error("Failed to get requested URL").to_response()


async def decryption_error_handler(_: Request, exc: DecryptionError) -> JSONResponse:
    return bad_request_error("Failed to decrypt file").to_response()


def register_error_handlers(app: FastAPI) -> None:
    """Attach handlers translating scan failures into HTTP errors."""

    app.add_exception_handler(ApiError, api_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(UpstreamFetchError, upstream_fetch_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(DecryptionError, decryption_error_handler)  # type: ignore[arg-type]


def bad_request_error(message: str) -> ApiError:
    """Return an :class:`ApiError` for input the gateway cannot process."""

    return ApiError(status.HTTP_400_BAD_REQUEST, "bad_request", message)


def forbidden_error(message: str) -> ApiError:
    """Return an :class:`ApiError` representing a rejected file."""

    return ApiError(status.HTTP_403_FORBIDDEN, "forbidden", message)


def bad_gateway_error(message: str) -> ApiError:
    """Return an :class:`ApiError` for a failed upstream request."""

    return ApiError(status.HTTP_502_BAD_GATEWAY, "bad_gateway", message)


__all__ = [
    "ApiError",
    "api_error_handler",
    "bad_gateway_error",
    "bad_request_error",
    "forbidden_error",
    "register_error_handlers",
]
