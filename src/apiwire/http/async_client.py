"""Non-blocking transport backend built on httpx.AsyncClient."""

from typing import Any, Mapping, Optional

import httpx

from ..common.config import HTTPConfig
from .base import FormData, Headers, PreparedRequest, TransportCore


class AsyncTransport(TransportCore):
    """
    Transport capability for asyncio applications.

    Each operation is a suspension point: the calling task yields while the
    exchange is outstanding. Cancelling the task (for example with
    ``asyncio.wait_for``) abandons the exchange; nothing is shared between
    calls except httpx's connection pool.

    The underlying ``httpx.AsyncClient`` is created on first use unless one
    is injected. Injected clients stay owned by the caller and are not
    closed by :meth:`aclose`.

    Example:
        >>> import asyncio
        >>> from apiwire.common.config import HTTPConfig
        >>> from apiwire.http.headers import AUTHORIZATION, bearer_auth
        >>>
        >>> async def main():
        ...     async with AsyncTransport(HTTPConfig()) as transport:
        ...         body = await transport.get(
        ...             "https://api.example.com/v1/me",
        ...             headers={AUTHORIZATION: bearer_auth("token")},
        ...         )
        ...         print(body)
        >>>
        >>> asyncio.run(main())
    """

    backend_name = "async"

    def __init__(
        self,
        config: Optional[HTTPConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the async transport.

        Args:
            config: HTTPConfig with timeout, pool and TLS settings
            client: Pre-built httpx.AsyncClient to use instead of creating one
        """
        super().__init__(config)
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "AsyncTransport":
        """Enter async context manager."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Exit async context manager."""
        await self.aclose()

    def _ensure_client(self) -> httpx.AsyncClient:
        # No await between check and assignment, so no lock is needed
        if self._client is None:
            self._client = httpx.AsyncClient(**self._client_kwargs())
            self._owns_client = True
            self.logger.info(
                "http_client_initialized",
                timeout=self.config.timeout,
                max_connections=self.config.max_connections,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            self.logger.info("http_client_closed")

    async def _send(self, request: PreparedRequest) -> str:
        # Invalid input was rejected in _prepare, before a pool is opened
        client = self._ensure_client()
        self.logger.debug("http_request", method=request.method, url=request.url)
        # CancelledError is not a RequestError and propagates untouched
        try:
            response = await client.request(
                request.method,
                request.url,
                headers=request.headers,
                content=request.content,
            )
        except httpx.RequestError as e:
            raise self._translate_error(request, e) from e
        return self._handle_response(request, response)

    async def get(
        self,
        url: str,
        headers: Optional[Headers] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        """
        Send a GET request; ``params`` are sent as query parameters.

        Returns:
            Response body text
        """
        return await self._send(self._prepare("GET", url, headers, params))

    async def post(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a POST request with a JSON body."""
        return await self._send(self._prepare("POST", url, headers, payload))

    async def post_form(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Optional[FormData] = None,
    ) -> str:
        """Send a POST request with a url-form-encoded body."""
        return await self._send(self._prepare("POST", url, headers, payload, form=True))

    async def put(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a PUT request with a JSON body."""
        return await self._send(self._prepare("PUT", url, headers, payload))

    async def delete(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        """Send a DELETE request with a JSON body."""
        return await self._send(self._prepare("DELETE", url, headers, payload))
