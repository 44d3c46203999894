"""Network subsystem: HTTP client construction and retry policy.

Modules:
- client: HTTPX client factory (timeouts, proxy, TLS)
- policy: HTTP policy constants
- retry: Tenacity attempt-bounded retry policy

Example:
    >>> from DriverFetch.BinaryDownload.network import build_http_client, create_attempt_policy
    >>> client = build_http_client(connect_timeout=5, read_timeout=30)
    >>> policy = create_attempt_policy(max_attempts=3)
"""

from DriverFetch.BinaryDownload.network.client import build_http_client
from DriverFetch.BinaryDownload.network.policy import (
    DOWNLOAD_CHUNK_SIZE,
    FOLLOW_REDIRECTS,
    HTTP_POOL_TIMEOUT,
    HTTP_WRITE_TIMEOUT,
    USER_AGENT,
)
from DriverFetch.BinaryDownload.network.retry import create_attempt_policy

__all__ = [
    "build_http_client",
    "create_attempt_policy",
    "DOWNLOAD_CHUNK_SIZE",
    "FOLLOW_REDIRECTS",
    "HTTP_POOL_TIMEOUT",
    "HTTP_WRITE_TIMEOUT",
    "USER_AGENT",
]
