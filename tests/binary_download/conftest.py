"""Shared fixtures for the binary_download test suite."""

from __future__ import annotations

import io
import os
import tarfile
import zipfile
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Union

import httpx
import pytest

from DriverFetch.BinaryDownload.network.client import build_http_client
from DriverFetch.BinaryDownload.settings import RunConfiguration

Route = Union[bytes, int, Exception]


def zip_bytes(entries: Mapping[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, payload in entries.items():
            archive.writestr(name, payload)
    return buffer.getvalue()


def tar_bytes(entries: Mapping[str, bytes], mode: str = "w:gz") -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode=mode) as archive:
        for name, payload in entries.items():
            info = tarfile.TarInfo(name)
            info.size = len(payload)
            archive.addfile(info, io.BytesIO(payload))
    return buffer.getvalue()


class ArchiveServer:
    """In-memory HTTP origin backed by ``httpx.MockTransport``.

    Each route maps a URL to archive bytes, an HTTP status code, or an
    exception to raise; a list of those is served one per request.
    """

    def __init__(self) -> None:
        self.routes: Dict[str, Union[Route, List[Route]]] = {}
        self.requests: List[str] = []
        self.client = build_http_client(
            5.0,
            5.0,
            use_system_proxy=False,
            transport=httpx.MockTransport(self._handle),
        )

    def serve(self, url: str, body: Union[Route, List[Route]]) -> str:
        self.routes[url] = body
        return url

    def count(self, url: Optional[str] = None) -> int:
        if url is None:
            return len(self.requests)
        return sum(1 for seen in self.requests if seen == url)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        self.requests.append(url)
        route = self.routes.get(url, 404)
        if isinstance(route, list):
            route = route.pop(0) if len(route) > 1 else route[0]
        if isinstance(route, Exception):
            raise route
        if isinstance(route, int):
            return httpx.Response(route, request=request)
        return httpx.Response(200, content=route, request=request)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep ``DRIVERFETCH_*`` variables from the host out of every test."""

    for name in list(os.environ):
        if name.startswith("DRIVERFETCH_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("DRIVERFETCH_LOG_DIR", str(tmp_path / "logs"))


@pytest.fixture
def archive_server() -> ArchiveServer:
    server = ArchiveServer()
    yield server
    server.client.close()


@pytest.fixture
def run_config(tmp_path: Path) -> Callable[..., RunConfiguration]:
    def _build(**overrides: object) -> RunConfiguration:
        values = {
            "root_directory": tmp_path / "binaries",
            "download_directory": tmp_path / "downloads",
            "retry_attempts": 1,
        }
        values.update(overrides)
        return RunConfiguration(**values)

    return _build


@pytest.fixture
def make_zip() -> Callable[[Mapping[str, bytes]], bytes]:
    return zip_bytes


@pytest.fixture
def make_tar() -> Callable[..., bytes]:
    return tar_bytes


@pytest.fixture
def phantomjs_zip() -> bytes:
    return zip_bytes(
        {
            "phantomjs-2.1.1/README.md": b"readme",
            "phantomjs-2.1.1/bin/phantomjs": b"#!/bin/sh\necho phantomjs\n",
        }
    )
