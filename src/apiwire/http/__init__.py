"""HTTP transport capability and its interchangeable backends."""

from typing import Optional, Union

import httpx

from ..common.config import HTTPConfig, TransportBackend
from .base import (
    AsyncBaseClient,
    BaseClient,
    FormData,
    Headers,
    PreparedRequest,
    TransportCore,
)
from .async_client import AsyncTransport
from .sync_client import SyncTransport
from .exceptions import (
    BackendConfigurationError,
    ClientError,
    HTTPStatusError,
    InvalidAuthError,
    InvalidURLError,
    NetworkError,
    RateLimitedError,
    SerializationError,
)
from . import headers

Transport = Union[AsyncTransport, SyncTransport]


def build_transport(
    config: Optional[HTTPConfig] = None,
    client: Union[httpx.Client, httpx.AsyncClient, None] = None,
) -> Transport:
    """
    Build the transport for the configured backend.

    Args:
        config: HTTPConfig whose ``backend`` selects the adapter
        client: Optional pre-built httpx client matching the backend

    Returns:
        AsyncTransport for ``async``, SyncTransport for ``sync``

    Raises:
        BackendConfigurationError: If ``client`` does not match the backend

    Example:
        >>> transport = build_transport(HTTPConfig(backend="sync"))
        >>> isinstance(transport, BaseClient)
        True
    """
    config = config or HTTPConfig()

    if config.backend is TransportBackend.ASYNC:
        if client is not None and not isinstance(client, httpx.AsyncClient):
            raise BackendConfigurationError(
                f"The async backend needs an httpx.AsyncClient, got {type(client).__name__}"
            )
        return AsyncTransport(config, client=client)

    if config.backend is TransportBackend.SYNC:
        if client is not None and not isinstance(client, httpx.Client):
            raise BackendConfigurationError(
                f"The sync backend needs an httpx.Client, got {type(client).__name__}"
            )
        return SyncTransport(config, client=client)

    raise BackendConfigurationError(f"Unknown transport backend: {config.backend!r}")


__all__ = [
    "AsyncBaseClient",
    "BaseClient",
    "AsyncTransport",
    "SyncTransport",
    "Transport",
    "TransportCore",
    "PreparedRequest",
    "Headers",
    "FormData",
    "build_transport",
    "headers",
    "ClientError",
    "InvalidAuthError",
    "HTTPStatusError",
    "RateLimitedError",
    "NetworkError",
    "SerializationError",
    "InvalidURLError",
    "BackendConfigurationError",
]
