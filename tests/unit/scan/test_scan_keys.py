from __future__ import annotations

import base64
import hashlib

import pytest

from src.media_scanner.scan.scan_keys import (
    build_download_url,
    effective_reference,
    result_key,
)
from src.media_scanner.scan.scan_models import EncryptedFile, MediaReference

pytestmark = pytest.mark.unit

URL = "https://media.example.org/_matrix/media/v1/download/example.org/abc123"


def test_download_url_shape() -> None:
    url = build_download_url("https://media.example.org", MediaReference("example.org", "abc123"))
    assert url == URL


def test_descriptor_overrides_reference() -> None:
    encrypted = EncryptedFile({"url": "mxc://other.org/xyz"})
    reference = effective_reference(MediaReference("example.org", "abc123"), encrypted)
    assert reference == MediaReference("other.org", "xyz")


def test_reference_kept_without_descriptor() -> None:
    reference = MediaReference("example.org", "abc123")
    assert effective_reference(reference, None) is reference


def test_mxc_without_media_id_is_rejected() -> None:
    with pytest.raises(ValueError):
        MediaReference.from_mxc("mxc://")


def test_result_key_is_deterministic() -> None:
    descriptor = {"url": "mxc://example.org/abc123", "key": {"k": "a"}, "iv": "b"}
    assert result_key(URL) == result_key(URL)
    assert result_key(URL, EncryptedFile(descriptor)) == result_key(
        URL, EncryptedFile(dict(reversed(list(descriptor.items()))))
    )


def test_result_key_distinguishes_descriptors() -> None:
    plain = result_key(URL)
    first = result_key(URL, EncryptedFile({"url": "mxc://example.org/abc123", "key": {"k": "a"}}))
    second = result_key(URL, EncryptedFile({"url": "mxc://example.org/abc123", "key": {"k": "b"}}))

    assert len({plain, first, second}) == 3


def test_result_key_is_stable_across_processes() -> None:
    expected = base64.b64encode(
        hashlib.sha256(b'{"eventContentFile":null,"httpUrl":"u"}').digest()
    ).decode()
    assert result_key("u") == expected
