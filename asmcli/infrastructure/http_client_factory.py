"""HTTP client factory.

One httpx.Client per API client instance, so connections are pooled and
every request has an explicit timeout instead of transport defaults.
"""
import httpx
import logging
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = "asmcli"


def create_http_client(
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    transport: Optional[httpx.BaseTransport] = None,
) -> httpx.Client:
    """
    Create a synchronous HTTP client for the Apple School Manager API.

    Args:
        timeout_seconds: Connect/read/write/pool timeout applied to every request
        transport: Optional transport override (tests pass httpx.MockTransport)

    Returns:
        Configured httpx.Client; the caller owns it and must close it
    """
    client = httpx.Client(
        timeout=httpx.Timeout(timeout_seconds),
        limits=httpx.Limits(
            max_keepalive_connections=5,
            max_connections=10,
            keepalive_expiry=30.0,
        ),
        headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
        transport=transport,
    )
    logger.debug(f"Created HTTP client (timeout={timeout_seconds}s)")
    return client
