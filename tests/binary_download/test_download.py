"""HTTPX MockTransport-based coverage for the single-attempt fetcher."""

from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from DriverFetch.BinaryDownload.download import FileDownloader
from DriverFetch.BinaryDownload.network.client import build_http_client

URL = "https://downloads.example.org/drivers/chromedriver_linux64.zip"


@pytest.fixture
def downloader(tmp_path: Path, archive_server) -> FileDownloader:
    return FileDownloader(tmp_path / "downloads", client=archive_server.client)


def test_successful_download_streams_to_named_file(
    downloader: FileDownloader, archive_server, tmp_path: Path
) -> None:
    archive_server.serve(URL, b"zip-bytes" * 10_000)

    path = downloader.attempt_download(URL)

    assert path == tmp_path / "downloads" / "chromedriver_linux64.zip"
    assert path.read_bytes() == b"zip-bytes" * 10_000
    assert not path.with_name(path.name + ".part").exists()
    assert archive_server.count(URL) == 1


@pytest.mark.parametrize("status", [404, 500, 503])
def test_http_error_status_returns_none(
    downloader: FileDownloader, archive_server, status: int
) -> None:
    archive_server.serve(URL, status)

    assert downloader.attempt_download(URL) is None
    assert archive_server.count(URL) == 1


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused"),
        httpx.ConnectTimeout("connect timed out"),
        httpx.ReadTimeout("read timed out"),
    ],
)
def test_transport_errors_return_none(
    downloader: FileDownloader, archive_server, error: Exception, caplog
) -> None:
    archive_server.serve(URL, error)

    with caplog.at_level("WARNING", logger="DriverFetch.BinaryDownload"):
        assert downloader.attempt_download(URL) is None

    record = next(r for r in caplog.records if r.getMessage() == "download attempt failed")
    assert record.stage == "download"
    assert record.url == URL


def test_each_call_performs_exactly_one_request(
    downloader: FileDownloader, archive_server
) -> None:
    archive_server.serve(URL, [500, b"payload"])

    assert downloader.attempt_download(URL) is None
    assert downloader.attempt_download(URL) is not None
    assert archive_server.count(URL) == 2


def test_redirects_are_followed(downloader: FileDownloader, archive_server) -> None:
    mirror = "https://cdn.example.org/chromedriver_linux64.zip"
    archive_server.serve(mirror, b"from-cdn")

    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.host == "downloads.example.org":
            return httpx.Response(302, headers={"Location": mirror}, request=request)
        return httpx.Response(200, content=b"from-cdn", request=request)

    client = build_http_client(5, 5, transport=httpx.MockTransport(handler))
    fetcher = FileDownloader(downloader.download_directory, client=client)
    try:
        assert fetcher.attempt_download(URL).read_bytes() == b"from-cdn"
    finally:
        client.close()


def test_client_carries_configured_timeouts_and_proxy_switch() -> None:
    client = build_http_client(3.0, 42.0, use_system_proxy=False)
    try:
        assert client.timeout.connect == 3.0
        assert client.timeout.read == 42.0
        assert client.trust_env is False
        assert client.headers["User-Agent"].startswith("driverfetch/")
    finally:
        client.close()


def test_downloader_closes_only_owned_client(tmp_path: Path, archive_server) -> None:
    FileDownloader(tmp_path, client=archive_server.client).close()
    assert not archive_server.client.is_closed

    owned = FileDownloader(tmp_path, connect_timeout=1, read_timeout=1)
    owned.close()
    assert owned.client.is_closed
