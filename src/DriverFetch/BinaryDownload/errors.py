"""Exception hierarchy shared across configuration, download, and extraction.

The binary pipeline spans configuration parsing, HTTP retrieval, digest
verification, and archive extraction.  This module groups the failure modes
into a small hierarchy so callers can tell a fatal run abort (configuration,
exhaustion, extraction) apart from the per-attempt failures that the retry
loop absorbs.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Sequence

__all__ = [
    "BinaryDownloadError",
    "ConfigurationError",
    "DownloadFailure",
    "IntegrityError",
    "DownloadExhaustedError",
    "ExtractionError",
    "FailureKind",
]


class FailureKind(str, Enum):
    """Tag attached to a single unsuccessful download attempt."""

    TRANSPORT = "transport"
    INTEGRITY = "integrity"


class BinaryDownloadError(RuntimeError):
    """Base exception for download, verification, or extraction failures."""


class ConfigurationError(BinaryDownloadError):
    """Raised when run settings, manifests, or artifact requests are invalid."""


class DownloadFailure(BinaryDownloadError):
    """Raised when a single HTTP download attempt fails."""

    kind = FailureKind.TRANSPORT

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class IntegrityError(BinaryDownloadError):
    """Raised when a file's digest does not match the expected value."""

    kind = FailureKind.INTEGRITY

    def __init__(self, message: str, *, expected: str, actual: str) -> None:
        super().__init__(message)
        self.expected = expected
        self.actual = actual
        self.retryable = True


class DownloadExhaustedError(BinaryDownloadError):
    """Raised when every download attempt for one artifact has failed."""

    def __init__(
        self,
        filename: str,
        *,
        attempts: int,
        failures: Optional[Sequence[FailureKind]] = None,
    ) -> None:
        super().__init__(f"Unable to successfully download '{filename}'!")
        self.filename = filename
        self.attempts = attempts
        self.failures = tuple(failures or ())


class ExtractionError(BinaryDownloadError):
    """Raised when an archive is unreadable or lacks the selected binary."""
