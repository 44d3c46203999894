"""
Archive Download Utilities

This module houses the single-attempt fetcher used by the download pipeline.
Each call performs exactly one streamed GET into the working directory and
reports failure as ``None`` so the orchestrator alone decides whether to try
again.
"""

from __future__ import annotations

import logging
import os
import time
from pathlib import Path
from typing import Optional

import httpx

from .errors import DownloadFailure
from .io.filesystem import filename_from_url
from .network.client import build_http_client
from .network.policy import DOWNLOAD_CHUNK_SIZE

__all__ = ["FileDownloader"]


class FileDownloader:
    """Fetch one URL into the working directory per call.

    Attributes:
        download_directory: Directory receiving downloaded archives.
        client: HTTPX client holding the timeout and proxy configuration.
        logger: Logger used for structured telemetry.

    Examples:
        >>> downloader = FileDownloader(Path("/tmp/archives"), connect_timeout=5, read_timeout=30)
        >>> downloader.close()
    """

    def __init__(
        self,
        download_directory: Path,
        *,
        connect_timeout: float = 15.0,
        read_timeout: float = 15.0,
        use_system_proxy: bool = True,
        client: Optional[httpx.Client] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.download_directory = Path(download_directory)
        self._owns_client = client is None
        self.client = client or build_http_client(
            connect_timeout,
            read_timeout,
            use_system_proxy=use_system_proxy,
        )
        self.logger = logger or logging.getLogger("DriverFetch.BinaryDownload")

    def attempt_download(self, url: str) -> Optional[Path]:
        """Download ``url`` once and return the local file, or ``None`` on failure.

        The body is streamed to ``<name>.part`` and renamed into place only
        after the transfer completes; a failed attempt may leave the partial
        file behind.
        """

        self.download_directory.mkdir(parents=True, exist_ok=True)
        target = self.download_directory / filename_from_url(url)
        try:
            self._stream_to(url, target)
        except DownloadFailure as exc:
            self.logger.warning(
                "download attempt failed",
                extra={
                    "stage": "download",
                    "url": url,
                    "status_code": exc.status_code,
                    "error": str(exc),
                },
            )
            return None
        return target

    def _stream_to(self, url: str, target: Path) -> None:
        part_path = target.with_name(target.name + ".part")
        start_time = time.monotonic()
        bytes_downloaded = 0
        try:
            with self.client.stream("GET", url) as response:
                response.raise_for_status()
                with part_path.open("wb") as handle:
                    for chunk in response.iter_bytes(chunk_size=DOWNLOAD_CHUNK_SIZE):
                        if not chunk:
                            continue
                        handle.write(chunk)
                        bytes_downloaded += len(chunk)
        except httpx.HTTPStatusError as exc:
            raise DownloadFailure(
                f"HTTP {exc.response.status_code} while downloading {url}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise DownloadFailure(f"HTTP error while downloading {url}: {exc}") from exc

        os.replace(part_path, target)
        elapsed = (time.monotonic() - start_time) * 1000
        self.logger.info(
            "download complete",
            extra={
                "stage": "download",
                "url": url,
                "bytes": bytes_downloaded,
                "elapsed_ms": round(elapsed, 2),
            },
        )

    def close(self) -> None:
        """Close the HTTP client if this downloader created it."""

        if self._owns_client:
            self.client.close()
