"""HTTPX client factory for archive downloads.

One client is built per orchestrator and lives for the whole run, so the
transport settings (timeouts, proxy handling, TLS trust) are fixed at
construction time.

Key design:
- **Per-phase timeouts**: connect and read are configurable; write and pool
  use conservative constants.
- **Proxy**: ``trust_env`` toggles whether ``HTTP(S)_PROXY``/``NO_PROXY`` and
  ``.netrc`` from the environment are honoured.
- **TLS**: certifi bundle with hostname verification.
- **Redirects**: followed, since driver hosts commonly redirect to CDNs.

Example:
    >>> from DriverFetch.BinaryDownload.network.client import build_http_client
    >>> client = build_http_client(connect_timeout=5, read_timeout=30)
    >>> client.close()
"""

import logging
import ssl
from typing import Optional

import certifi
import httpx

from DriverFetch.BinaryDownload.network.policy import (
    FOLLOW_REDIRECTS,
    HTTP_POOL_TIMEOUT,
    HTTP_WRITE_TIMEOUT,
    USER_AGENT,
)

logger = logging.getLogger(__name__)


def _create_ssl_context() -> ssl.SSLContext:
    """Create SSL context backed by the certifi CA bundle."""
    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def build_http_client(
    connect_timeout: float,
    read_timeout: float,
    *,
    use_system_proxy: bool = True,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """Create the HTTPX client used for every download attempt of a run.

    Args:
        connect_timeout: Seconds allowed to establish a connection.
        read_timeout: Seconds allowed between received chunks.
        use_system_proxy: Honour proxy configuration from the environment.
        transport: Optional transport override (tests pass ``httpx.MockTransport``).

    Returns:
        Configured ``httpx.Client``; callers own closing it.
    """
    client = httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(
            connect=connect_timeout,
            read=read_timeout,
            write=HTTP_WRITE_TIMEOUT,
            pool=HTTP_POOL_TIMEOUT,
        ),
        follow_redirects=FOLLOW_REDIRECTS,
        trust_env=use_system_proxy,
        verify=_create_ssl_context(),
        headers={"User-Agent": USER_AGENT},
    )

    logger.debug(
        "HTTPX client created",
        extra={
            "connect_timeout": connect_timeout,
            "read_timeout": read_timeout,
            "use_system_proxy": use_system_proxy,
        },
    )
    return client


__all__ = ["build_http_client"]
