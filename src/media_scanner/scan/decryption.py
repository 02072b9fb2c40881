"""Decryption of Matrix encrypted attachments (AES-256-CTR, v2)."""

from __future__ import annotations

import base64
import binascii
import hashlib
from pathlib import Path
from typing import Any, BinaryIO, Iterator, Mapping

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .media_fetcher import CHUNK_SIZE
from .scan_errors import DecryptionError

SUPPORTED_VERSIONS = {"v2"}


def _unpadded_b64decode(value: str, *, urlsafe: bool = False) -> bytes:
    padded = value + "=" * (-len(value) % 4)
    if urlsafe:
        return base64.urlsafe_b64decode(padded)
    return base64.b64decode(padded, validate=True)


def _read_descriptor(descriptor: Mapping[str, Any]) -> tuple[bytes, bytes, str]:
    version = descriptor.get("v", "v2")
    if version not in SUPPORTED_VERSIONS:
        raise DecryptionError(f"Unsupported encrypted attachment version '{version}'")

    jwk = descriptor.get("key") or {}
    if jwk.get("alg", "A256CTR") != "A256CTR":
        raise DecryptionError(f"Unsupported key algorithm '{jwk.get('alg')}'")
    try:
        key = _unpadded_b64decode(jwk["k"], urlsafe=True)
        iv = _unpadded_b64decode(descriptor["iv"])
        expected_hash = descriptor["hashes"]["sha256"]
    except (KeyError, TypeError, ValueError, binascii.Error) as exc:
        raise DecryptionError("Malformed encrypted attachment descriptor") from exc

    if len(key) != 32:
        raise DecryptionError("Attachment key must be 256 bits")
    if len(iv) != 16:
        raise DecryptionError("Attachment IV must be 128 bits")
    return key, iv, expected_hash


def _read_chunks(source: BinaryIO) -> Iterator[bytes]:
    while True:
        chunk = source.read(CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


def decrypt_file(input_path: Path, output_path: Path, descriptor: Mapping[str, Any]) -> None:
    """Verify the ciphertext hash and write the plaintext to ``output_path``."""
    key, iv, expected_hash = _read_descriptor(descriptor)

    hasher = hashlib.sha256()
    with input_path.open("rb") as source:
        for chunk in _read_chunks(source):
            hasher.update(chunk)
    digest = base64.b64encode(hasher.digest()).decode("ascii").rstrip("=")
    if digest != expected_hash.rstrip("="):
        raise DecryptionError("Ciphertext hash does not match descriptor")

    decryptor = Cipher(algorithms.AES(key), modes.CTR(iv)).decryptor()
    with input_path.open("rb") as source, output_path.open("wb") as target:
        for chunk in _read_chunks(source):
            target.write(decryptor.update(chunk))
        target.write(decryptor.finalize())
