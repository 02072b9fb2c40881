"""Download URL and result key derivation."""

from __future__ import annotations

import base64
import hashlib
import json

from .scan_models import EncryptedFile, MediaReference

DOWNLOAD_PATH = "/_matrix/media/v1/download"


def effective_reference(
    reference: MediaReference, encrypted_file: EncryptedFile | None
) -> MediaReference:
    """Descriptor URL wins over the supplied reference."""
    if encrypted_file is not None:
        return encrypted_file.reference
    return reference


def build_download_url(base_url: str, reference: MediaReference) -> str:
    return f"{base_url}{DOWNLOAD_PATH}/{reference.domain}/{reference.media_id}"


def result_key(http_url: str, encrypted_file: EncryptedFile | None = None) -> str:
    """Hash of the full input, not just the media reference.

    Keying on the URL alone would let anyone mark an encrypted file as clean
    without holding the keys needed to decrypt it.
    """
    payload = json.dumps(
        {
            "httpUrl": http_url,
            "eventContentFile": dict(encrypted_file.content) if encrypted_file else None,
        },
        sort_keys=True,
        separators=(",", ":"),
    )
    digest = hashlib.sha256(payload.encode("utf-8")).digest()
    return base64.b64encode(digest).decode("ascii")
