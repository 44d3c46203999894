# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.pipeline",
#   "purpose": "Cache check, bounded download loop, verification, and extraction per artifact",
#   "sections": [
#     {"id": "coerce", "name": "Request Coercion", "anchor": "function-coerce-requests", "kind": "function"},
#     {"id": "orchestrator", "name": "DownloadOrchestrator", "anchor": "class-downloadorchestrator", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Download orchestration for standalone driver binaries.

The orchestrator walks a set of :class:`~DriverFetch.BinaryDownload.models.ArtifactRequest`
objects in order.  For each one it reuses a trusted archive from the working
directory when possible, otherwise downloads it with a bounded number of
attempts, then extracts the single executable named by the artifact key into
``root_directory/category/platform/architecture/version``.  Configuration
problems are detected for every artifact before the first byte is fetched.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import httpx
from tenacity import RetryCallState

from .checksums import DigestVerifier
from .download import FileDownloader
from .errors import ConfigurationError, DownloadExhaustedError, FailureKind
from .io.filesystem import extract_binary
from .models import ArtifactKey, ArtifactRequest, AttemptOutcome, BinaryType, ExtractionResult
from .network.retry import create_attempt_policy
from .settings import RunConfiguration

__all__ = ["DownloadOrchestrator", "coerce_requests"]

RequestCollection = Union[Mapping[object, ArtifactRequest], Iterable[ArtifactRequest]]


def coerce_requests(requests: RequestCollection) -> Dict[ArtifactKey, ArtifactRequest]:
    """Return requests keyed by artifact key, preserving iteration order.

    Mappings may be keyed by raw key strings or :class:`ArtifactKey`; the key
    must agree with the request it maps to.

    Raises:
        ConfigurationError: On duplicate keys or a mapping key that disagrees
            with its request.
    """

    if isinstance(requests, Mapping):
        pairs = []
        for raw_key, request in requests.items():
            key = raw_key if isinstance(raw_key, ArtifactKey) else ArtifactKey.parse(raw_key)
            if key != request.key:
                raise ConfigurationError(
                    f"Mapping key '{key}' does not match request key '{request.key}'"
                )
            pairs.append((key, request))
    else:
        pairs = [(request.key, request) for request in requests]

    resolved: Dict[ArtifactKey, ArtifactRequest] = {}
    for key, request in pairs:
        if key in resolved:
            raise ConfigurationError(f"Duplicate artifact key '{key}'")
        resolved[key] = request
    return resolved


def _installed_binary(destination: Path, binary: BinaryType) -> Path:
    plain = destination / binary.executable_name
    windows = destination / f"{binary.executable_name}.exe"
    if not plain.exists() and windows.exists():
        return windows
    return plain


class DownloadOrchestrator:
    """Ensure every requested driver binary is present under the root directory.

    Attributes:
        config: Run settings, fixed for the lifetime of the orchestrator.
        requests: Artifact requests keyed by :class:`ArtifactKey`.
        verifier: Digest verifier honouring ``config.check_file_hash``.
        downloader: Single-attempt fetcher sharing one HTTP client.

    Examples:
        >>> with DownloadOrchestrator(RunConfiguration(), requests) as orchestrator:  # doctest: +SKIP
        ...     results = orchestrator.ensure_binaries()
    """

    def __init__(
        self,
        config: RunConfiguration,
        requests: RequestCollection,
        *,
        client: Optional[httpx.Client] = None,
        downloader: Optional[FileDownloader] = None,
        verifier: Optional[DigestVerifier] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        config.ensure_directories()
        self.config = config
        self.requests = coerce_requests(requests)
        self.logger = logger or logging.getLogger("DriverFetch.BinaryDownload")
        self.verifier = verifier or DigestVerifier(enabled=config.check_file_hash)
        self._owns_downloader = downloader is None
        self.downloader = downloader or FileDownloader(
            config.download_directory,
            connect_timeout=config.connect_timeout_sec,
            read_timeout=config.read_timeout_sec,
            use_system_proxy=config.use_system_proxy,
            client=client,
            logger=self.logger,
        )
        self._binary_paths: Dict[ArtifactKey, Path] = {}

    def __enter__(self) -> "DownloadOrchestrator":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_downloader:
            self.downloader.close()

    def validate(self) -> None:
        """Check every request up front; raises before any network activity."""

        for key, request in self.requests.items():
            if self.config.check_file_hash:
                request.ensure_verifiable()
            BinaryType.from_selector(key.platform)

    def ensure_binaries(self) -> List[ExtractionResult]:
        """Download, verify, and extract every requested artifact in order.

        Returns:
            One :class:`ExtractionResult` per artifact.

        Raises:
            ConfigurationError: If any request is invalid; nothing is fetched.
            DownloadExhaustedError: If an artifact could not be obtained within
                ``config.retry_attempts`` attempts.
            ExtractionError: If an archive lacks its binary or is unreadable.
        """

        self.validate()
        self.logger.info(
            "Archives will be downloaded to '%s'",
            self.config.download_directory.resolve(),
            extra={"stage": "config"},
        )
        self.logger.info(
            "Standalone executable files will be extracted to '%s'",
            self.config.root_directory,
            extra={"stage": "config"},
        )
        self.logger.info(
            "Preparing to download Selenium Standalone Executable Binaries...",
            extra={"stage": "config"},
        )

        results = [self._process(request) for request in self.requests.values()]
        self.logger.info(
            "binaries ready",
            extra={"stage": "complete", "count": len(results)},
        )
        return results

    def binary_paths(self) -> Dict[ArtifactKey, Path]:
        """Return key to executable path for every artifact processed so far."""

        return dict(self._binary_paths)

    def _process(self, request: ArtifactRequest) -> ExtractionResult:
        archive, from_cache = self._resolve_archive(request)
        destination = self.config.root_directory / Path(*request.key.relative_path.parts)
        binary = request.key.binary
        self.logger.debug(
            "Detected a binary for platform: %s",
            binary.name,
            extra={"stage": "extract", "key": str(request.key)},
        )
        extracted = extract_binary(
            archive,
            destination,
            self.config.overwrite_existing,
            binary,
            logger=self.logger,
        )
        binary_path = _installed_binary(destination, binary)
        self._binary_paths[request.key] = binary_path
        return ExtractionResult(
            key=request.key,
            archive=archive,
            binary_path=binary_path,
            extracted=extracted,
            from_cache=from_cache,
        )

    def _resolve_archive(self, request: ArtifactRequest) -> Tuple[Path, bool]:
        cached = self.config.download_directory / request.filename
        exists = cached.is_file()
        self.logger.info(
            "Checking to see if archive file '%s' exists: %s",
            cached,
            exists,
            extra={"stage": "cache"},
        )
        if exists:
            valid = self.verifier.is_valid(
                cached, request.expected_digest, request.digest_algorithm
            )
            self.logger.info(
                "Checking to see if archive file '%s' is valid: %s",
                cached,
                valid,
                extra={"stage": "verify"},
            )
            if valid:
                return cached, True
        return self.download_valid_file(request), False

    def download_valid_file(self, request: ArtifactRequest) -> Path:
        """Fetch ``request`` until a verified archive is on disk.

        Raises:
            DownloadExhaustedError: After ``config.retry_attempts`` unsuccessful
                attempts; ``failures`` lists what went wrong in each one.
        """

        filename = request.filename
        failures: List[FailureKind] = []

        def attempt() -> AttemptOutcome:
            path = self.downloader.attempt_download(request.source_location)
            if path is None:
                outcome = AttemptOutcome.failed(FailureKind.TRANSPORT)
            else:
                self.logger.info(
                    "Checking to see if downloaded copy of '%s' is valid.",
                    path.name,
                    extra={"stage": "verify"},
                )
                if self.verifier.is_valid(path, request.expected_digest, request.digest_algorithm):
                    return AttemptOutcome.success(path)
                outcome = AttemptOutcome.failed(FailureKind.INTEGRITY, path)
            failures.append(outcome.failure)
            self.logger.info(
                "Problem downloading '%s'... ",
                filename,
                extra={"stage": "download", "failure": outcome.failure.value},
            )
            return outcome

        def announce_retry(retry_state: RetryCallState) -> None:
            self.logger.info(
                "Trying to download '%s' again...",
                filename,
                extra={"stage": "download", "attempt": retry_state.attempt_number + 1},
            )

        policy = create_attempt_policy(
            self.config.retry_attempts,
            self.config.retry_delay_sec,
            on_retry=announce_retry,
        )
        outcome = policy(attempt)
        if not outcome.ok:
            self.logger.error(
                "download exhausted",
                extra={
                    "stage": "download",
                    "file": filename,
                    "attempts": len(failures),
                    "failures": [kind.value for kind in failures],
                },
            )
            raise DownloadExhaustedError(filename, attempts=len(failures), failures=failures)
        return outcome.path
