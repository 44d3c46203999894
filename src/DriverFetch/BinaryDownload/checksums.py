"""Checksum normalisation, computation, and verification helpers.

Repository manifests describe expected digests with loosely formatted
algorithm names (``SHA1``, ``sha-256``) and hex values of mixed case.  This
module normalises those declarations against a closed set of supported
algorithms and exposes a streaming digest routine so archives are never
materialised in memory.  :class:`DigestVerifier` is the only component the
download pipeline consults when deciding whether an archive on disk can be
trusted.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError, IntegrityError

__all__ = [
    "SUPPORTED_ALGORITHMS",
    "ExpectedChecksum",
    "DigestVerifier",
    "compute_digest",
    "ensure_digest",
    "normalize_algorithm",
    "normalize_digest",
]

SUPPORTED_ALGORITHMS = frozenset({"md5", "sha1", "sha224", "sha256", "sha384", "sha512"})

_DIGEST_CHUNK_SIZE = 1 << 20

logger = logging.getLogger("DriverFetch.BinaryDownload")


@dataclass(slots=True, frozen=True)
class ExpectedChecksum:
    """Expected checksum derived from a repository manifest entry."""

    algorithm: str
    value: str

    def to_mapping(self) -> dict:
        """Return mapping representation for reports and JSON output."""

        return {"algorithm": self.algorithm, "value": self.value}


def normalize_algorithm(algorithm: str) -> str:
    """Return the canonical hashlib name for ``algorithm``.

    Raises:
        ConfigurationError: If the algorithm is not part of the supported set.
    """

    candidate = algorithm.strip().lower().replace("-", "").replace("_", "")
    if candidate not in SUPPORTED_ALGORITHMS:
        raise ConfigurationError(f"Unsupported checksum algorithm '{algorithm}'")
    return candidate


def normalize_digest(value: str) -> str:
    """Return a stripped, lower-cased digest string."""

    return value.strip().lower()


def compute_digest(path: Path, algorithm: str) -> str:
    """Stream ``path`` once and return its hexadecimal digest.

    Args:
        path: File whose digest should be calculated.
        algorithm: Any name accepted by :func:`normalize_algorithm`.

    Returns:
        Lower-case hexadecimal digest string.
    """

    hasher = hashlib.new(normalize_algorithm(algorithm))
    with Path(path).open("rb") as stream:
        for chunk in iter(lambda: stream.read(_DIGEST_CHUNK_SIZE), b""):
            hasher.update(chunk)
    return hasher.hexdigest()


def ensure_digest(path: Path, checksum: ExpectedChecksum) -> None:
    """Raise :class:`IntegrityError` when ``path`` does not match ``checksum``."""

    actual = compute_digest(path, checksum.algorithm)
    if actual != normalize_digest(checksum.value):
        raise IntegrityError(
            f"{checksum.algorithm} mismatch for {Path(path).name}",
            expected=normalize_digest(checksum.value),
            actual=actual,
        )


class DigestVerifier:
    """Decide whether a file on disk matches an expected digest.

    Attributes:
        enabled: When false every file is accepted without hashing.

    Examples:
        >>> DigestVerifier(enabled=False).is_valid(Path("missing.zip"), None, None)
        True
    """

    def __init__(self, enabled: bool = True) -> None:
        self.enabled = enabled

    def is_valid(
        self,
        path: Path,
        expected_digest: Optional[str],
        algorithm: Optional[str],
    ) -> bool:
        """Return whether ``path`` hashes to ``expected_digest``.

        A mismatch is reported as ``False``.  A missing or one-sided digest
        declaration is a configuration problem and raises instead.

        Raises:
            ConfigurationError: If only one of digest and algorithm is set, if
                neither is set while verification is enabled, or if the
                algorithm is unsupported.
        """

        if not self.enabled:
            return True
        has_digest = bool(expected_digest and expected_digest.strip())
        has_algorithm = bool(algorithm and algorithm.strip())
        if has_digest != has_algorithm:
            raise ConfigurationError(
                "Checksum algorithm and expected digest must be provided together"
            )
        if not has_digest:
            raise ConfigurationError(
                "Hash verification is enabled but no expected digest was provided"
            )

        checksum = ExpectedChecksum(
            algorithm=normalize_algorithm(algorithm), value=normalize_digest(expected_digest)
        )
        try:
            ensure_digest(path, checksum)
        except IntegrityError as exc:
            logger.info(
                "digest mismatch",
                extra={
                    "stage": "verify",
                    "file": Path(path).name,
                    "checksum": checksum.to_mapping(),
                    "actual": exc.actual,
                },
            )
            return False
        return True
