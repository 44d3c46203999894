# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload",
#   "purpose": "Package initialization for DriverFetch.BinaryDownload",
#   "sections": [
#     {"id": "getattr", "name": "__getattr__", "anchor": "function-getattr", "kind": "function"},
#     {"id": "dir", "name": "__dir__", "anchor": "function-dir", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Public API for the DriverFetch binary downloader.

This facade exposes the orchestrator that downloads, verifies, and extracts
Selenium standalone driver binaries, together with the configuration models,
manifest helpers, and error types callers need around it.
"""

from __future__ import annotations

from importlib import import_module
from typing import TYPE_CHECKING, Any, Dict, Tuple

__version__ = "1.0.0"

_EXPORTS: Dict[str, Tuple[str, str]] = {
    "DownloadOrchestrator": (".pipeline", "DownloadOrchestrator"),
    "RunConfiguration": (".settings", "RunConfiguration"),
    "LoggingConfiguration": (".settings", "LoggingConfiguration"),
    "ArtifactKey": (".models", "ArtifactKey"),
    "ArtifactRequest": (".models", "ArtifactRequest"),
    "BinaryType": (".models", "BinaryType"),
    "ExtractionResult": (".models", "ExtractionResult"),
    "DigestVerifier": (".checksums", "DigestVerifier"),
    "compute_digest": (".checksums", "compute_digest"),
    "load_manifest": (".config", "load_manifest"),
    "select_requests": (".config", "select_requests"),
    "setup_logging": (".logging_config", "setup_logging"),
    "BinaryDownloadError": (".errors", "BinaryDownloadError"),
    "ConfigurationError": (".errors", "ConfigurationError"),
    "DownloadFailure": (".errors", "DownloadFailure"),
    "IntegrityError": (".errors", "IntegrityError"),
    "DownloadExhaustedError": (".errors", "DownloadExhaustedError"),
    "ExtractionError": (".errors", "ExtractionError"),
    "FailureKind": (".errors", "FailureKind"),
}

__all__ = [*_EXPORTS, "__version__"]

if TYPE_CHECKING:  # pragma: no cover - import for static analysis only
    from .checksums import DigestVerifier, compute_digest
    from .config import load_manifest, select_requests
    from .errors import (
        BinaryDownloadError,
        ConfigurationError,
        DownloadExhaustedError,
        DownloadFailure,
        ExtractionError,
        FailureKind,
        IntegrityError,
    )
    from .logging_config import setup_logging
    from .models import ArtifactKey, ArtifactRequest, BinaryType, ExtractionResult
    from .pipeline import DownloadOrchestrator
    from .settings import LoggingConfiguration, RunConfiguration


def __getattr__(name: str) -> Any:
    """Lazily import exports so ``import DriverFetch.BinaryDownload`` stays cheap."""

    target = _EXPORTS.get(name)
    if target is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
    module = import_module(target[0], __name__)
    value = getattr(module, target[1])
    globals()[name] = value
    return value


def __dir__() -> list[str]:
    """Expose lazily-populated attributes in ``dir()`` results."""

    return sorted(set(globals()) | set(__all__))
