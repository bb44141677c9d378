"""Blocking transport backend built on httpx.Client."""

import threading
from typing import Any, Mapping, Optional

import httpx

from ..common.config import HTTPConfig
from .base import FormData, Headers, PreparedRequest, TransportCore


class SyncTransport(TransportCore):
    """
    Transport capability for synchronous code.

    Each operation blocks the calling thread until the exchange completes.
    One instance may be shared between threads: the lazily created
    ``httpx.Client`` is built exactly once, and httpx guards its own
    connection pool.

    Example:
        >>> from apiwire.common.config import HTTPConfig, TransportBackend
        >>>
        >>> with SyncTransport(HTTPConfig(backend=TransportBackend.SYNC)) as transport:
        ...     body = transport.post_form(
        ...         "https://accounts.example.com/api/token",
        ...         payload={"grant_type": "client_credentials"},
        ...     )
    """

    backend_name = "sync"

    def __init__(
        self,
        config: Optional[HTTPConfig] = None,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the sync transport.

        Args:
            config: HTTPConfig with timeout, pool and TLS settings
            client: Pre-built httpx.Client to use instead of creating one
        """
        super().__init__(config)
        self._client = client
        self._owns_client = client is None
        self._client_lock = threading.Lock()

    def __enter__(self) -> "SyncTransport":
        self._ensure_client()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def _ensure_client(self) -> httpx.Client:
        client = self._client
        if client is not None:
            return client

        with self._client_lock:
            # Another thread may have created it while we waited
            if self._client is None:
                self._client = httpx.Client(**self._client_kwargs())
                self._owns_client = True
                self.logger.info(
                    "http_client_initialized",
                    timeout=self.config.timeout,
                    max_connections=self.config.max_connections,
                )
            return self._client

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        with self._client_lock:
            if self._client is None or not self._owns_client:
                return
            client, self._client = self._client, None
        client.close()
        self.logger.info("http_client_closed")

    def _send(self, request: PreparedRequest) -> str:
        client = self._ensure_client()
        self.logger.debug("http_request", method=request.method, url=request.url)
        # Timeouts surface as httpx.TimeoutException, a RequestError
        try:
            response = client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.content,
            )
        except httpx.RequestError as e:
            raise self._translate_error(request, e) from e
        return self._handle_response(request, response)

    def get(
        self,
        url: str,
        headers: Optional[Headers] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """Send a GET request; ``params`` are sent as query parameters."""
        return self._send(self._prepare("GET", url, headers, params))

    def post(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a POST request with a JSON body."""
        return self._send(self._prepare("POST", url, headers, payload))

    def post_form(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Optional[FormData] = None,
    ) -> str:
        """Send a POST request with a url-form-encoded body."""
        return self._send(self._prepare("POST", url, headers, payload, form=True))

    def put(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a PUT request with a JSON body."""
        return self._send(self._prepare("PUT", url, headers, payload))

    def delete(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a DELETE request with a JSON body."""
        return self._send(self._prepare("DELETE", url, headers, payload))
