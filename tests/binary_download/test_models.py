"""Artifact key parsing, selector resolution, and request validation."""

from __future__ import annotations

from pathlib import Path, PurePosixPath

import pytest

from DriverFetch.BinaryDownload.errors import ConfigurationError, FailureKind
from DriverFetch.BinaryDownload.models import (
    ArtifactKey,
    ArtifactRequest,
    AttemptOutcome,
    BinaryType,
    ExtractionResult,
)


def test_artifact_key_parses_four_segments() -> None:
    key = ArtifactKey.parse("windows/internetexplorer/64bit/2.48.0")

    assert (key.category, key.platform, key.architecture, key.version) == (
        "windows",
        "internetexplorer",
        "64bit",
        "2.48.0",
    )
    assert key.relative_path == PurePosixPath("windows/internetexplorer/64bit/2.48.0")
    assert str(key) == "windows/internetexplorer/64bit/2.48.0"
    assert key.binary is BinaryType.INTERNETEXPLORER


@pytest.mark.parametrize(
    "raw",
    ["os/phantomjs/32bit", "os/phantomjs/32bit/1/extra", "os//32bit/1", "os/../32bit/1", ""],
)
def test_artifact_key_rejects_malformed(raw: str) -> None:
    with pytest.raises(ConfigurationError):
        ArtifactKey.parse(raw)


@pytest.mark.parametrize(
    ("selector", "executable"),
    [
        ("googlechrome", "chromedriver"),
        ("PHANTOMJS", "phantomjs"),
        ("opera", "operadriver"),
        ("marionette", "wires"),
        ("edge", "MicrosoftWebDriver"),
        ("firefox", "geckodriver"),
        ("internetexplorer", "IEDriverServer"),
    ],
)
def test_binary_type_selectors(selector: str, executable: str) -> None:
    assert BinaryType.from_selector(selector).executable_name == executable


def test_binary_type_unknown_selector() -> None:
    with pytest.raises(ConfigurationError):
        ArtifactKey.parse("linux/safari/64bit/1").binary


def test_binary_type_matches_base_name_only() -> None:
    assert BinaryType.GOOGLECHROME.matches("chromedriver_linux64/chromedriver")
    assert BinaryType.GOOGLECHROME.matches("chromedriver.exe")
    assert not BinaryType.GOOGLECHROME.matches("chromedriver.txt")
    assert not BinaryType.GOOGLECHROME.matches("chromedriver/README")


def test_request_derives_filename_from_url() -> None:
    request = ArtifactRequest(
        key="linux/googlechrome/64bit/2.20",
        source_location="https://chromedriver.storage.googleapis.com/2.20/chromedriver_linux64.zip?x=1",
        expected_digest="  ABCDEF ",
        digest_algorithm="SHA-1",
    )

    assert request.filename == "chromedriver_linux64.zip"
    assert request.expected_digest == "abcdef"
    assert request.digest_algorithm == "sha1"
    request.ensure_verifiable()


@pytest.mark.parametrize(
    "url",
    ["ftp://example.org/a.zip", "not a url", "https://example.org/", "file:///tmp/a.zip"],
)
def test_request_rejects_unusable_locations(url: str) -> None:
    with pytest.raises(ConfigurationError):
        ArtifactRequest(key="os/phantomjs/32bit/1", source_location=url)


def test_request_rejects_unknown_algorithm() -> None:
    with pytest.raises(ConfigurationError):
        ArtifactRequest(
            key="os/phantomjs/32bit/1",
            source_location="https://example.org/a.zip",
            expected_digest="abc",
            digest_algorithm="whirlpool",
        )


@pytest.mark.parametrize(
    ("digest", "algorithm"),
    [(None, None), ("abc", None), (None, "sha1")],
)
def test_ensure_verifiable_requires_both(digest, algorithm) -> None:
    request = ArtifactRequest(
        key="os/phantomjs/32bit/1",
        source_location="https://example.org/a.zip",
        expected_digest=digest,
        digest_algorithm=algorithm,
    )
    with pytest.raises(ConfigurationError):
        request.ensure_verifiable()


def test_request_is_immutable() -> None:
    request = ArtifactRequest(key="os/phantomjs/32bit/1", source_location="https://example.org/a.zip")
    with pytest.raises(Exception):
        request.source_location = "https://example.org/b.zip"  # type: ignore[misc]


def test_attempt_outcome_states(tmp_path: Path) -> None:
    assert AttemptOutcome.success(tmp_path).ok
    assert not AttemptOutcome.failed(FailureKind.TRANSPORT).ok
    assert not AttemptOutcome.failed(FailureKind.INTEGRITY, tmp_path).ok


def test_extraction_result_mapping(tmp_path: Path) -> None:
    result = ExtractionResult(
        key=ArtifactKey.parse("os/phantomjs/32bit/1"),
        archive=tmp_path / "a.zip",
        binary_path=tmp_path / "phantomjs",
        extracted=True,
        from_cache=False,
    )
    assert result.to_mapping()["key"] == "os/phantomjs/32bit/1"
    assert result.to_mapping()["extracted"] is True
