"""Shared HTTP client with connection pooling for transcription calls."""

import logging
import threading
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 90.0

_shared_client: Optional[httpx.Client] = None
_client_lock = threading.Lock()


def get_shared_client() -> httpx.Client:
    """Get or create a shared httpx.Client with connection pooling."""
    global _shared_client
    with _client_lock:
        if _shared_client is None:
            _shared_client = httpx.Client(
                timeout=DEFAULT_TIMEOUT,
                limits=httpx.Limits(
                    max_keepalive_connections=4,
                    max_connections=8,
                    keepalive_expiry=30.0,
                ),
                http2=True,
            )
            logger.debug("Created shared HTTP client with connection pooling")
        return _shared_client


def close_shared_client():
    """Close the shared client. Call on app shutdown or model unload."""
    global _shared_client
    with _client_lock:
        client, _shared_client = _shared_client, None
    if client is not None:
        client.close()
        logger.debug("Closed shared HTTP client")
