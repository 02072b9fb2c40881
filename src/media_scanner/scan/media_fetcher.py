"""Download media from the upstream repository into a workspace."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

import httpx

from .scan_errors import UpstreamFetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB


@dataclass(slots=True)
class FetchedMedia:
    """A downloaded body on disk and the headers it came with."""

    path: Path
    headers: dict[str, str]


@dataclass(slots=True)
class MediaFetcher:
    """Stream a remote object to a file.

    Error statuses become :class:`UpstreamFetchError`; transport faults
    (connection refused, DNS, protocol errors) propagate unchanged.
    """

    transport: httpx.AsyncBaseTransport | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    async def fetch(self, url: str, target: Path) -> FetchedMedia:
        async with httpx.AsyncClient(
            transport=self.transport,
            timeout=None,
            follow_redirects=True,
        ) as client:
            async with client.stream("GET", url) as response:
                if response.is_error:
                    self.log.error(
                        "scan.fetch.bad_status",
                        extra={"url": url, "status_code": response.status_code},
                    )
                    raise UpstreamFetchError(url, response.status_code)
                with target.open("wb") as sink:
                    async for chunk in response.aiter_bytes(CHUNK_SIZE):
                        sink.write(chunk)
                headers = {name.lower(): value for name, value in response.headers.items()}

        self.log.info(
            "scan.fetch.completed",
            extra={"url": url, "path": str(target), "size_bytes": target.stat().st_size},
        )
        return FetchedMedia(path=target, headers=headers)
