"""Helpers for handing clean files over to HTTP responses."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from typing import Mapping

DELIVERED_FILE = "deliveredFile"

HEADER_WHITELIST = (
    "content-type",
    "content-disposition",
    "content-security-policy",
)


def whitelist_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Copy only the upstream headers that are safe to forward."""
    lowered = {name.lower(): value for name, value in headers.items()}
    return {name: lowered[name] for name in HEADER_WHITELIST if name in lowered}


def link_or_copy(source: Path, target: Path) -> None:
    """Hard-link ``source`` to ``target``; copy when linking is not possible."""
    if target.exists():
        return
    try:
        os.link(source, target)
    except OSError:
        shutil.copyfile(source, target)
