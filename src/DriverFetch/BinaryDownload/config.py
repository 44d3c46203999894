# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.config",
#   "purpose": "YAML repository manifest parsing, validation, and artifact selection",
#   "sections": [
#     {"id": "resolvedmanifest", "name": "ResolvedManifest", "anchor": "class-resolvedmanifest", "kind": "class"},
#     {"id": "load-manifest", "name": "load_manifest", "anchor": "function-load-manifest", "kind": "function"},
#     {"id": "select-requests", "name": "select_requests", "anchor": "function-select-requests", "kind": "function"}
#   ]
# }
# === /NAVMAP ===

"""Repository manifest parsing, validation, and selection helpers."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import yaml
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ValidationError as CoreValidationError

from .errors import ConfigurationError
from .models import ArtifactRequest
from .settings import (
    LoggingConfiguration,
    RunConfiguration,
    apply_env_overrides,
    format_validation_error,
)

__all__ = [
    "ResolvedManifest",
    "build_manifest",
    "load_manifest",
    "load_raw_yaml",
    "select_requests",
]

_DEFAULT_KEYS = set(RunConfiguration.model_fields) | {"logging"}
_ENTRY_KEYS = {"key", "url", "hash", "hash_type"}
_VERSION_SPLIT = re.compile(r"[.\-_]")


class ResolvedManifest(BaseModel):
    defaults: RunConfiguration
    logging: LoggingConfiguration = Field(default_factory=LoggingConfiguration)
    requests: List[ArtifactRequest] = Field(default_factory=list)

    model_config = {"arbitrary_types_allowed": True}


def _validate_defaults(defaults: Mapping[str, object]) -> None:
    errors: List[str] = []
    for key in defaults:
        if key not in _DEFAULT_KEYS:
            errors.append(f"Unknown key in defaults: {key}")
    logging_section = defaults.get("logging")
    if logging_section is not None and not isinstance(logging_section, Mapping):
        errors.append("'defaults.logging' must be a mapping")
    if errors:
        raise ConfigurationError("Manifest validation failed:\n- " + "\n- ".join(errors))


def _build_request(index: int, entry: object) -> ArtifactRequest:
    if not isinstance(entry, Mapping):
        raise ConfigurationError(f"Binary entry #{index} must be a mapping")
    unknown = sorted(str(key) for key in entry if key not in _ENTRY_KEYS)
    if unknown:
        raise ConfigurationError(
            f"Binary entry #{index} has unknown keys: {', '.join(unknown)}"
        )
    for required in ("key", "url"):
        if not entry.get(required):
            raise ConfigurationError(f"Binary entry #{index} is missing '{required}'")

    def _optional(name: str) -> Optional[str]:
        value = entry.get(name)
        return None if value is None else str(value)

    try:
        return ArtifactRequest(
            key=str(entry["key"]),
            source_location=str(entry["url"]),
            expected_digest=_optional("hash"),
            digest_algorithm=_optional("hash_type"),
        )
    except (PydanticValidationError, CoreValidationError) as exc:
        raise ConfigurationError(
            f"Binary entry #{index} is invalid:\n  {format_validation_error(exc)}"
        ) from exc


def build_manifest(raw: Mapping[str, object]) -> ResolvedManifest:
    """Validate a parsed manifest mapping and resolve its artifact requests.

    Environment overrides (``DRIVERFETCH_*``) are applied on top of the
    manifest defaults.

    Raises:
        ConfigurationError: If defaults or entries are malformed, or keys repeat.
    """

    defaults_section = raw.get("defaults") or {}
    if not isinstance(defaults_section, Mapping):
        raise ConfigurationError("'defaults' section must be a mapping")
    _validate_defaults(defaults_section)

    run_values = {key: value for key, value in defaults_section.items() if key != "logging"}
    try:
        defaults = RunConfiguration.model_validate(run_values)
        logging_config = LoggingConfiguration.model_validate(defaults_section.get("logging") or {})
    except (PydanticValidationError, CoreValidationError) as exc:
        raise ConfigurationError(
            "Manifest validation failed:\n  " + format_validation_error(exc)
        ) from exc

    apply_env_overrides(defaults, logging_config)

    binaries = raw.get("binaries")
    if binaries is None:
        raise ConfigurationError("'binaries' section is required")
    if not isinstance(binaries, list):
        raise ConfigurationError("'binaries' must be a list")

    requests: List[ArtifactRequest] = []
    seen = set()
    for index, entry in enumerate(binaries, start=1):
        request = _build_request(index, entry)
        if request.key in seen:
            raise ConfigurationError(f"Duplicate artifact key '{request.key}' in binary entry #{index}")
        seen.add(request.key)
        requests.append(request)

    return ResolvedManifest(defaults=defaults, logging=logging_config, requests=requests)


def load_raw_yaml(manifest_path: Path) -> Mapping[str, object]:
    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        raise ConfigurationError(f"Manifest file not found: {manifest_path}")

    try:
        with manifest_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Manifest file '{manifest_path}' contains invalid YAML") from exc

    if not isinstance(data, Mapping):
        raise ConfigurationError("Manifest file must contain a mapping at the root")
    return data


def load_manifest(manifest_path: Path) -> ResolvedManifest:
    """Load and resolve the YAML repository manifest at ``manifest_path``."""

    return build_manifest(load_raw_yaml(manifest_path))


def _version_sort_key(version: str) -> Tuple[Tuple[int, int, str], ...]:
    """Dotted-numeric ordering; numeric parts sort before textual ones.

    Examples:
        >>> _version_sort_key("2.9") < _version_sort_key("2.10")
        True
    """

    parts = []
    for part in _VERSION_SPLIT.split(version):
        if part.isdigit():
            parts.append((0, int(part), ""))
        else:
            parts.append((1, 0, part.lower()))
    return tuple(parts)


def _normalise_filter(values: Optional[Sequence[str]]) -> Optional[set]:
    if not values:
        return None
    return {value.strip().lower() for value in values if value.strip()}


def select_requests(
    requests: Iterable[ArtifactRequest],
    categories: Optional[Sequence[str]] = None,
    architectures: Optional[Sequence[str]] = None,
    latest_only: bool = False,
) -> List[ArtifactRequest]:
    """Filter requests by category and architecture, optionally newest only.

    Args:
        requests: Candidate requests in manifest order.
        categories: Allowed key categories (case-insensitive); all when empty.
        architectures: Allowed key architectures (case-insensitive); all when empty.
        latest_only: Keep only the highest version per
            ``category/platform/architecture``.

    Returns:
        Selected requests, preserving manifest order.
    """

    category_filter = _normalise_filter(categories)
    arch_filter = _normalise_filter(architectures)
    selected = [
        request
        for request in requests
        if (category_filter is None or request.key.category.lower() in category_filter)
        and (arch_filter is None or request.key.architecture.lower() in arch_filter)
    ]
    if not latest_only:
        return selected

    newest: Dict[Tuple[str, str, str], ArtifactRequest] = {}
    for request in selected:
        group = (request.key.category, request.key.platform, request.key.architecture)
        current = newest.get(group)
        if current is None or _version_sort_key(request.key.version) > _version_sort_key(
            current.key.version
        ):
            newest[group] = request
    keep = {id(request) for request in newest.values()}
    return [request for request in selected if id(request) in keep]
