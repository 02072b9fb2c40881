"""Pydantic schemas for scan endpoints."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .scan_models import EncryptedFile


class EncryptedFilePayload(BaseModel):
    """Encrypted attachment descriptor; unknown fields are kept verbatim."""

    model_config = ConfigDict(extra="allow")

    # Any URL whose last two path segments name the server and media id.
    url: str = Field(pattern=r"^(?:.*/)?[^/]+/[^/]+/*$")
    key: dict[str, Any] | None = None
    iv: str | None = None
    hashes: dict[str, str] | None = None
    v: str | None = None

    def to_domain(self) -> EncryptedFile:
        return EncryptedFile(content=self.model_dump(exclude_unset=True))


class EncryptedRequest(BaseModel):
    file: EncryptedFilePayload


class ScanVerdictResponse(BaseModel):
    clean: bool
    info: str


class ScanReportResponse(BaseModel):
    scanned: bool
    clean: bool | None = None
    info: str | None = None
