"""Failure taxonomy shared by every transport backend.

A transport operation either returns the response body text or raises one
of the exceptions below. Callers catch :class:`ClientError` for any failure,
or a specific subclass to react to one kind (for example re-authenticating
on :class:`InvalidAuthError`).
"""

from typing import Optional


class ClientError(Exception):
    """Base exception for transport failures."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.url = url
        self.method = method


class InvalidAuthError(ClientError):
    """Raised when the server rejects the request's credentials."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, url=url, method=method)
        self.status_code = status_code
        self.body = body


class HTTPStatusError(ClientError):
    """Raised for non-2xx responses that are not authentication failures."""

    def __init__(
        self,
        message: str,
        status_code: int,
        body: str = "",
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, url=url, method=method)
        self.status_code = status_code
        self.body = body


class RateLimitedError(HTTPStatusError):
    """Raised on 429 responses; ``retry_after`` is in seconds when known."""

    def __init__(
        self,
        message: str,
        retry_after: Optional[int] = None,
        body: str = "",
        url: Optional[str] = None,
        method: Optional[str] = None,
    ):
        super().__init__(message, status_code=429, body=body, url=url, method=method)
        self.retry_after = retry_after


class NetworkError(ClientError):
    """Raised when the exchange could not complete: connect, timeout, I/O."""

    pass


class SerializationError(ClientError):
    """Raised when a payload cannot be encoded or a body cannot be read as text."""

    pass


class InvalidURLError(SerializationError):
    """Raised when the target is not an absolute http(s) URL."""

    pass


class BackendConfigurationError(Exception):
    """Raised when backend selection is inconsistent at startup."""

    pass
