"""Verdict cache keyed by result key."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from .scan_models import ScanResult


class ResultCache(Protocol):
    """Storage for finalized scan results."""

    def get(self, key: str) -> ScanResult | None:
        """Return the cached result for ``key`` or ``None``."""

    def set(self, key: str, result: ScanResult) -> None:
        """Store ``result`` under ``key``, replacing any previous entry."""

    def clear(self) -> None:
        """Drop every entry."""


@dataclass(slots=True)
class InMemoryResultCache:
    """Process-local cache without bound or expiry."""

    _entries: dict[str, ScanResult] = field(default_factory=dict)

    def get(self, key: str) -> ScanResult | None:
        return self._entries.get(key)

    def set(self, key: str, result: ScanResult) -> None:
        self._entries[key] = result

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
