import logging
from typing import Optional

import httpx

logger = logging.getLogger(__name__)


def build_http_client(timeout: float = 10.0, base_url: str = "",
                      transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    """Create a pooled synchronous httpx client.

    ``transport`` is passed straight to httpx, which lets tests plug in an
    ``httpx.MockTransport`` instead of the network.
    """
    limits = httpx.Limits(
        max_keepalive_connections=10,
        max_connections=20,
        keepalive_expiry=30.0,
    )
    client_timeout = httpx.Timeout(
        timeout=timeout,
        connect=min(timeout, 5.0),
    )
    logger.debug("Creating HTTP client for %r (timeout=%s)", base_url or "<no base url>", timeout)
    return httpx.Client(
        base_url=base_url,
        limits=limits,
        timeout=client_timeout,
        follow_redirects=True,
        transport=transport,
    )
