"""Data structures for the scan pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True, slots=True)
class MediaReference:
    """A ``(domain, media_id)`` pair on a federated media repository."""

    domain: str
    media_id: str

    @classmethod
    def from_mxc(cls, url: str) -> "MediaReference":
        """Build a reference from the last two segments of an ``mxc://`` URL."""
        parts = url.rstrip("/").split("/")
        if len(parts) < 2 or not parts[-1] or not parts[-2]:
            raise ValueError(f"Cannot derive media reference from '{url}'")
        return cls(domain=parts[-2], media_id=parts[-1])


@dataclass(frozen=True, slots=True)
class EncryptedFile:
    """Encrypted attachment descriptor as sent in a Matrix event.

    ``content`` keeps the descriptor exactly as received; it is what the
    result key is computed from, so two descriptors that differ in any field
    never share a verdict.
    """

    content: Mapping[str, Any]

    @property
    def url(self) -> str:
        return str(self.content["url"])

    @property
    def has_key(self) -> bool:
        return bool(self.content.get("key"))

    @property
    def reference(self) -> MediaReference:
        return MediaReference.from_mxc(self.url)


@dataclass(frozen=True, slots=True)
class ScanVerdict:
    """Interpretation of a single scanner run."""

    clean: bool
    info: str
    exit_code: int


@dataclass(frozen=True, slots=True)
class ScanResult:
    """Verdict plus the fetched file and its response headers."""

    clean: bool
    info: str
    exit_code: int
    file_path: Path | None = None
    headers: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_verdict(
        cls,
        verdict: ScanVerdict,
        *,
        file_path: Path | None,
        headers: Mapping[str, str],
    ) -> "ScanResult":
        return cls(
            clean=verdict.clean,
            info=verdict.info,
            exit_code=verdict.exit_code,
            file_path=file_path,
            headers=dict(headers),
        )


@dataclass(frozen=True, slots=True)
class ScanReport:
    """Cache-only view of a verdict."""

    scanned: bool
    clean: bool | None = None
    info: str | None = None

    def as_dict(self) -> dict[str, Any]:
        if not self.scanned:
            return {"scanned": False}
        return {"scanned": True, "clean": self.clean, "info": self.info}


@dataclass(frozen=True, slots=True)
class ScannedFile:
    """A clean file ready to be streamed back, owned by a delivery workspace."""

    path: Path
    headers: Mapping[str, str]
    workspace: Path
