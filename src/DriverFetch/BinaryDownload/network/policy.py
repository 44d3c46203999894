"""HTTP policy constants shared by the download client.

Connect and read timeouts are run-level settings (see
:class:`DriverFetch.BinaryDownload.settings.RunConfiguration`); the values here
cover the phases that are not user-tunable.
"""

from DriverFetch.BinaryDownload import __version__

#: Write timeout (time to send request headers; downloads have no body)
HTTP_WRITE_TIMEOUT = 15.0

#: Pool timeout (acquiring a connection from the pool)
HTTP_POOL_TIMEOUT = 5.0

#: Driver mirrors frequently redirect to storage buckets or CDNs
FOLLOW_REDIRECTS = True

USER_AGENT = f"driverfetch/{__version__}"

#: Chunk size used when streaming archive bodies to disk
DOWNLOAD_CHUNK_SIZE = 1 << 16

__all__ = [
    "DOWNLOAD_CHUNK_SIZE",
    "FOLLOW_REDIRECTS",
    "HTTP_POOL_TIMEOUT",
    "HTTP_WRITE_TIMEOUT",
    "USER_AGENT",
]
