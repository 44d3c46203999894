# === NAVMAP v1 ===
# {
#   "module": "DriverFetch.BinaryDownload.io.filesystem",
#   "purpose": "Filename sanitisation and single-binary archive extraction",
#   "sections": [
#     {"id": "sanitisation", "name": "Filename Sanitisation", "anchor": "SAN", "kind": "helpers"},
#     {"id": "archives", "name": "Binary Extraction", "anchor": "ARC", "kind": "api"}
#   ]
# }
# === /NAVMAP ===

"""Filesystem helpers for downloaded driver archives.

Responsibilities include sanitising filenames derived from URLs and pulling a
single named executable out of a multi-platform archive.  Archives are read
with libarchive, which detects the container format from the file contents,
so a zip saved without a suffix extracts the same as ``driver.zip``.  Only the
base name of the matching entry is ever written, so entry paths containing
``..`` or absolute prefixes cannot escape the destination directory.
"""

from __future__ import annotations

import logging
import os
import re
import stat
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Iterable, Optional
from urllib.parse import unquote, urlparse

import libarchive

from ..errors import ExtractionError

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checkers only
    from ..models import BinaryType

__all__ = [
    "extract_binary",
    "filename_from_url",
    "is_bare_gzip",
    "sanitize_filename",
]

logger = logging.getLogger("DriverFetch.BinaryDownload")


def sanitize_filename(filename: str) -> str:
    """Return a filesystem-safe filename derived from ``filename``."""

    original = filename
    safe = filename.replace(os.sep, "_").replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^A-Za-z0-9._-]", "_", safe)
    safe = safe.strip("._") or "download"
    if len(safe) > 255:
        safe = safe[:255]
    if safe != original:
        logger.warning(
            "sanitized unsafe filename",
            extra={"stage": "sanitize", "original": original, "sanitized": safe},
        )
    return safe


def filename_from_url(url: str) -> str:
    """Return the sanitised final path segment of ``url``.

    Examples:
        >>> filename_from_url("https://example.org/files/download.zip?x=1")
        'download.zip'
    """

    return sanitize_filename(PurePosixPath(unquote(urlparse(url).path)).name)


def is_bare_gzip(archive: Path) -> bool:
    """Return True when ``archive`` names a gzip stream rather than a tarball."""

    name = archive.name.lower()
    return name.endswith(".gz") and not name.endswith(".tar.gz")


def _write_executable(blocks: Iterable[bytes], target: Path) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    part_path = target.with_name(target.name + ".part")
    with part_path.open("wb") as handle:
        for block in blocks:
            handle.write(block)
    mode = part_path.stat().st_mode
    part_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    os.replace(part_path, target)


def extract_binary(
    archive: Path,
    destination_dir: Path,
    overwrite: bool,
    binary: "BinaryType",
    *,
    logger: Optional[logging.Logger] = None,
) -> bool:
    """Extract the single executable selected by ``binary`` from ``archive``.

    Args:
        archive: Downloaded archive in any format libarchive reads. A name
            ending in ``.gz`` (but not ``.tar.gz``) is read as one gzip stream
            holding the executable itself.
        destination_dir: Directory that receives the executable.
        overwrite: Replace an executable that already exists.
        binary: Selector naming the executable to pull out.
        logger: Optional logger for extraction telemetry.

    Returns:
        True when a file was written, False when the destination already held
        the executable and ``overwrite`` was false.

    Raises:
        ExtractionError: If the archive is missing, corrupt, of an unknown
            format, or has no entry matching ``binary``.
    """

    log = logger or logging.getLogger("DriverFetch.BinaryDownload")
    archive = Path(archive)
    if not archive.is_file():
        raise ExtractionError(f"Archive not found: {archive}")

    bare_gzip = is_bare_gzip(archive)
    format_name = "raw" if bare_gzip else "all"
    member_name: Optional[str] = None
    try:
        with libarchive.file_reader(str(archive), format_name=format_name) as reader:
            for entry in reader:
                if bare_gzip:
                    # The raw reader exposes the whole stream as one entry.
                    suffix = ".exe" if archive.name.lower().endswith(".exe.gz") else ""
                    member_name = binary.executable_name + suffix
                elif entry.isfile and binary.matches(entry.pathname):
                    member_name = entry.pathname
                else:
                    continue

                target = Path(destination_dir) / PurePosixPath(
                    member_name.replace("\\", "/")
                ).name
                if target.exists() and not overwrite:
                    log.info(
                        "binary already present, skipping extraction",
                        extra={"stage": "extract", "archive": archive.name, "target": str(target)},
                    )
                    return False
                _write_executable(entry.get_blocks(), target)
                break
    except (libarchive.ArchiveError, OSError) as exc:
        raise ExtractionError(f"Unable to extract from archive {archive.name}: {exc}") from exc

    if member_name is None:
        raise ExtractionError(
            f"No '{binary.executable_name}' entry found in archive {archive.name}"
        )

    log.info(
        "extracted binary",
        extra={
            "stage": "extract",
            "archive": archive.name,
            "member": member_name,
            "target": str(target),
        },
    )
    return True
