"""Single-binary extraction from archives read through libarchive."""

from __future__ import annotations

import gzip
import os
import stat
from pathlib import Path

import pytest

from DriverFetch.BinaryDownload.errors import ExtractionError
from DriverFetch.BinaryDownload.io import extract_binary, is_bare_gzip, sanitize_filename
from DriverFetch.BinaryDownload.models import BinaryType


def _write(path: Path, payload: bytes) -> Path:
    path.write_bytes(payload)
    return path


def test_extracts_matching_entry_from_nested_zip(tmp_path: Path, phantomjs_zip: bytes) -> None:
    archive = _write(tmp_path / "phantomjs.zip", phantomjs_zip)
    destination = tmp_path / "out"

    assert extract_binary(archive, destination, False, BinaryType.PHANTOMJS) is True

    target = destination / "phantomjs"
    assert target.read_bytes() == b"#!/bin/sh\necho phantomjs\n"
    assert target.stat().st_mode & stat.S_IXUSR
    assert sorted(path.name for path in destination.iterdir()) == ["phantomjs"]


def test_extracts_windows_executable(tmp_path: Path, make_zip) -> None:
    archive = _write(
        tmp_path / "IEDriverServer_x64.zip",
        make_zip({"IEDriverServer.exe": b"MZ"}),
    )

    extract_binary(archive, tmp_path / "out", False, BinaryType.INTERNETEXPLORER)

    assert (tmp_path / "out" / "IEDriverServer.exe").read_bytes() == b"MZ"


@pytest.mark.parametrize(
    ("suffix", "mode"),
    [(".tar.gz", "w:gz"), (".tgz", "w:gz"), (".tar.bz2", "w:bz2"), (".tar.xz", "w:xz"), (".tar", "w")],
)
def test_extracts_from_tar_variants(tmp_path: Path, make_tar, suffix: str, mode: str) -> None:
    archive = _write(
        tmp_path / f"geckodriver{suffix}",
        make_tar({"geckodriver": b"gecko", "LICENSE": b"mpl"}, mode),
    )

    assert extract_binary(archive, tmp_path / "out", False, BinaryType.FIREFOX)
    assert (tmp_path / "out" / "geckodriver").read_bytes() == b"gecko"


def test_extracts_bare_gzip(tmp_path: Path) -> None:
    archive = _write(tmp_path / "wires-0.6.2-linux64.gz", gzip.compress(b"wires-binary"))

    assert extract_binary(archive, tmp_path / "out", False, BinaryType.MARIONETTE)
    assert (tmp_path / "out" / "wires").read_bytes() == b"wires-binary"


def test_bare_gzip_of_windows_executable_keeps_exe_suffix(tmp_path: Path) -> None:
    archive = _write(tmp_path / "wires-0.6.2-win.exe.gz", gzip.compress(b"MZ"))

    extract_binary(archive, tmp_path / "out", False, BinaryType.MARIONETTE)

    assert (tmp_path / "out" / "wires.exe").exists()


def test_traversal_entries_are_flattened(tmp_path: Path, make_zip) -> None:
    archive = _write(tmp_path / "evil.zip", make_zip({"../../chromedriver": b"payload"}))
    destination = tmp_path / "deep" / "out"

    extract_binary(archive, destination, False, BinaryType.GOOGLECHROME)

    assert (destination / "chromedriver").read_bytes() == b"payload"
    assert not (tmp_path / "chromedriver").exists()


def test_existing_binary_is_kept_without_overwrite(tmp_path: Path, phantomjs_zip: bytes) -> None:
    archive = _write(tmp_path / "phantomjs.zip", phantomjs_zip)
    destination = tmp_path / "out"
    destination.mkdir()
    target = _write(destination / "phantomjs", b"old")

    assert extract_binary(archive, destination, False, BinaryType.PHANTOMJS) is False
    assert target.read_bytes() == b"old"

    assert extract_binary(archive, destination, True, BinaryType.PHANTOMJS) is True
    assert target.read_bytes() == b"#!/bin/sh\necho phantomjs\n"


def test_missing_entry_raises(tmp_path: Path, make_zip) -> None:
    archive = _write(tmp_path / "operadriver.zip", make_zip({"README": b"nothing"}))

    with pytest.raises(ExtractionError, match="operadriver"):
        extract_binary(archive, tmp_path / "out", False, BinaryType.OPERA)


def test_corrupt_archive_raises(tmp_path: Path, phantomjs_zip: bytes) -> None:
    archive = _write(tmp_path / "broken.zip", phantomjs_zip[:40])

    with pytest.raises(ExtractionError):
        extract_binary(archive, tmp_path / "out", False, BinaryType.PHANTOMJS)


def test_unrecognised_archive_format_raises(tmp_path: Path) -> None:
    archive = _write(tmp_path / "driver.rar", b"\x00\x01\xfe\xff" * 64)

    with pytest.raises(ExtractionError, match="driver.rar"):
        extract_binary(archive, tmp_path / "out", False, BinaryType.EDGE)


def test_format_is_detected_from_contents_not_suffix(tmp_path: Path, phantomjs_zip: bytes) -> None:
    archive = _write(tmp_path / "phantomjs-latest", phantomjs_zip)

    assert extract_binary(archive, tmp_path / "out", False, BinaryType.PHANTOMJS) is True
    assert (tmp_path / "out" / "phantomjs").read_bytes() == b"#!/bin/sh\necho phantomjs\n"


def test_tarball_with_zip_suffix_is_read_as_tar(tmp_path: Path, make_tar) -> None:
    archive = _write(tmp_path / "geckodriver.zip", make_tar({"geckodriver": b"gecko"}, "w:gz"))

    assert extract_binary(archive, tmp_path / "out", False, BinaryType.FIREFOX)
    assert (tmp_path / "out" / "geckodriver").read_bytes() == b"gecko"


@pytest.mark.parametrize(
    ("name", "expected"),
    [("wires.gz", True), ("wires.exe.GZ", True), ("geckodriver.tar.gz", False), ("a.zip", False)],
)
def test_bare_gzip_names(name: str, expected: bool) -> None:
    assert is_bare_gzip(Path(name)) is expected


def test_missing_archive_raises(tmp_path: Path) -> None:
    with pytest.raises(ExtractionError):
        extract_binary(tmp_path / "absent.zip", tmp_path / "out", False, BinaryType.EDGE)


def test_no_partial_file_left_after_extraction(tmp_path: Path, phantomjs_zip: bytes) -> None:
    archive = _write(tmp_path / "phantomjs.zip", phantomjs_zip)

    extract_binary(archive, tmp_path / "out", False, BinaryType.PHANTOMJS)

    assert not any(name.endswith(".part") for name in os.listdir(tmp_path / "out"))


def test_sanitize_filename() -> None:
    assert sanitize_filename("chromedriver_linux64.zip") == "chromedriver_linux64.zip"
    assert sanitize_filename("../evil name.zip") == "evil_name.zip"
    assert sanitize_filename("") == "download"
