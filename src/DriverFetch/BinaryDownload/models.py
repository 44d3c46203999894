# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.models",
#   "purpose": "Typed artifact keys, requests, binary selectors, and per-artifact results",
#   "sections": [
#     {"id": "binarytype", "name": "BinaryType", "anchor": "class-binarytype", "kind": "class"},
#     {"id": "artifactkey", "name": "ArtifactKey", "anchor": "class-artifactkey", "kind": "class"},
#     {"id": "artifactrequest", "name": "ArtifactRequest", "anchor": "class-artifactrequest", "kind": "class"},
#     {"id": "attemptoutcome", "name": "AttemptOutcome", "anchor": "class-attemptoutcome", "kind": "class"},
#     {"id": "extractionresult", "name": "ExtractionResult", "anchor": "class-extractionresult", "kind": "class"}
#   ]
# }
# === /NAVMAP ===

"""Data model for the binary download pipeline.

Artifact keys arrive from repository manifests as ``category/platform/arch/version``
strings.  They are parsed once into :class:`ArtifactKey` so the orchestrator
reads a typed ``platform`` field instead of re-splitting strings, and the
extraction selector is resolved through the closed :class:`BinaryType` enum.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any, Optional
from urllib.parse import unquote, urlparse

from pydantic import BaseModel, ConfigDict, field_validator

from .checksums import normalize_algorithm, normalize_digest
from .errors import ConfigurationError, FailureKind
from .io.filesystem import filename_from_url

__all__ = [
    "BinaryType",
    "ArtifactKey",
    "ArtifactRequest",
    "AttemptOutcome",
    "ExtractionResult",
]


class BinaryType(Enum):
    """Closed set of extraction selectors and the executable each one names."""

    INTERNETEXPLORER = "IEDriverServer"
    GOOGLECHROME = "chromedriver"
    PHANTOMJS = "phantomjs"
    OPERA = "operadriver"
    MARIONETTE = "wires"
    EDGE = "MicrosoftWebDriver"
    FIREFOX = "geckodriver"

    @property
    def executable_name(self) -> str:
        return self.value

    def matches(self, entry_name: str) -> bool:
        """Return whether an archive member's base name is this executable."""

        base = PurePosixPath(entry_name.replace("\\", "/")).name
        return base in {self.value, f"{self.value}.exe"}

    @classmethod
    def from_selector(cls, selector: str) -> "BinaryType":
        try:
            return cls[selector.strip().upper()]
        except KeyError as exc:
            raise ConfigurationError(f"Unrecognised binary selector '{selector}'") from exc


@dataclass(frozen=True, order=True)
class ArtifactKey:
    """Structured identifier ``category/platform/architecture/version``.

    Examples:
        >>> key = ArtifactKey.parse("os/phantomjs/32bit/1")
        >>> key.platform, str(key)
        ('phantomjs', 'os/phantomjs/32bit/1')
    """

    category: str
    platform: str
    architecture: str
    version: str

    @classmethod
    def parse(cls, raw: str) -> "ArtifactKey":
        segments = [segment.strip() for segment in str(raw).replace("\\", "/").split("/")]
        if len(segments) != 4 or not all(segments):
            raise ConfigurationError(
                f"Artifact key '{raw}' must look like category/platform/architecture/version"
            )
        for segment in segments:
            if segment in {".", ".."}:
                raise ConfigurationError(f"Artifact key '{raw}' contains a relative segment")
        return cls(*segments)

    @property
    def relative_path(self) -> PurePosixPath:
        return PurePosixPath(self.category, self.platform, self.architecture, self.version)

    @property
    def binary(self) -> BinaryType:
        return BinaryType.from_selector(self.platform)

    def __str__(self) -> str:
        return str(self.relative_path)


class ArtifactRequest(BaseModel):
    """One artifact to obtain: where it lives and how to recognise it."""

    key: ArtifactKey
    source_location: str
    expected_digest: Optional[str] = None
    digest_algorithm: Optional[str] = None

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @field_validator("key", mode="before")
    @classmethod
    def _parse_key(cls, value: Any) -> ArtifactKey:
        if isinstance(value, ArtifactKey):
            return value
        return ArtifactKey.parse(value)

    @field_validator("source_location")
    @classmethod
    def _validate_location(cls, value: str) -> str:
        candidate = value.strip()
        parsed = urlparse(candidate)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ConfigurationError(f"Source location must be an http(s) URL: {value!r}")
        if not PurePosixPath(unquote(parsed.path)).name:
            raise ConfigurationError(f"Source location has no file name: {value!r}")
        return candidate

    @field_validator("expected_digest")
    @classmethod
    def _normalize_digest(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return normalize_digest(value)

    @field_validator("digest_algorithm")
    @classmethod
    def _normalize_algorithm(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return normalize_algorithm(value)

    @property
    def filename(self) -> str:
        """File name of the archive, taken from the URL's final path segment."""

        return filename_from_url(self.source_location)

    def ensure_verifiable(self) -> None:
        """Raise unless both digest and algorithm are present."""

        if self.expected_digest is None and self.digest_algorithm is None:
            raise ConfigurationError(
                f"'{self.key}': hash verification is enabled but no digest is configured"
            )
        if self.expected_digest is None or self.digest_algorithm is None:
            raise ConfigurationError(
                f"'{self.key}': expected digest and digest algorithm must be provided together"
            )


@dataclass(slots=True)
class AttemptOutcome:
    """Result of one fetch attempt: a file on disk or a tagged failure."""

    path: Optional[Path] = None
    failure: Optional[FailureKind] = None

    @property
    def ok(self) -> bool:
        return self.path is not None and self.failure is None

    @classmethod
    def success(cls, path: Path) -> "AttemptOutcome":
        return cls(path=path)

    @classmethod
    def failed(cls, kind: FailureKind, path: Optional[Path] = None) -> "AttemptOutcome":
        return cls(path=path, failure=kind)


@dataclass(slots=True, frozen=True)
class ExtractionResult:
    """What happened to one artifact during a run.

    Attributes:
        key: Artifact that was processed.
        archive: Archive the binary was taken from.
        binary_path: Where the executable lives under the root directory.
        extracted: False when an existing binary was kept untouched.
        from_cache: True when the archive was reused without a network fetch.
    """

    key: ArtifactKey
    archive: Path
    binary_path: Path
    extracted: bool
    from_cache: bool

    def to_mapping(self) -> dict:
        return {
            "key": str(self.key),
            "archive": str(self.archive),
            "binary_path": str(self.binary_path),
            "extracted": self.extracted,
            "from_cache": self.from_cache,
        }
