"""Domain-specific exceptions for the fetch/decrypt/scan pipeline."""


class ScanError(Exception):
    """Base class for scan pipeline errors."""


class ConfigurationError(ScanError):
    """Raised when required scanner settings are missing."""


class UpstreamFetchError(ScanError):
    """Raised when the media repository answers with an error status."""

    def __init__(self, url: str, status_code: int) -> None:
        super().__init__(f"Received status code {status_code} when requesting {url}")
        self.url = url
        self.status_code = status_code


class DecryptionError(ScanError):
    """Raised when an encrypted attachment cannot be decrypted."""
