"""Transport capability shared by the async and sync backends.

The two protocols below describe the same five operations, once with
``async def`` and once with plain ``def``. Backends implement exactly one of
them. :class:`TransportCore` holds the request preparation and response
classification both backends use, so an identical call produces an
identical body or an identical :class:`~apiwire.http.exceptions.ClientError`
whichever backend is active.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Tuple, runtime_checkable
from urllib.parse import urlencode

import httpx
import structlog

from ..common.config import HTTPConfig
from .exceptions import (
    ClientError,
    HTTPStatusError,
    InvalidAuthError,
    InvalidURLError,
    NetworkError,
    RateLimitedError,
    SerializationError,
)
from .headers import (
    ACCEPT,
    CONTENT_TYPE,
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    USER_AGENT,
    merge_headers,
)

logger = structlog.get_logger(__name__)

Headers = Dict[str, str]
FormData = Dict[str, str]

# OAuth error codes (RFC 6749 section 5.2, RFC 6750 section 3.1) that mean
# the credentials themselves were rejected.
AUTH_ERROR_CODES = frozenset(
    {"invalid_client", "invalid_grant", "invalid_token", "unauthorized_client"}
)


@runtime_checkable
class AsyncBaseClient(Protocol):
    """
    Non-blocking transport capability.

    Every operation performs exactly one HTTP exchange and returns the raw
    response body. ``headers`` entries override the backend's default
    headers of the same (case-insensitive) name.

    Raises:
        InvalidAuthError: Credentials rejected by the server
        HTTPStatusError: Any other non-2xx response
        NetworkError: Exchange could not complete
        SerializationError: Payload not encodable or body not readable
    """

    async def get(
        self,
        url: str,
        headers: Optional[Headers] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        ...

    async def post(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...

    async def post_form(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Optional[FormData] = None,
    ) -> str:
        ...

    async def put(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...

    async def delete(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...


@runtime_checkable
class BaseClient(Protocol):
    """Blocking transport capability; same contract as :class:`AsyncBaseClient`."""

    def get(
        self,
        url: str,
        headers: Optional[Headers] = None,
        params: Optional[Mapping[str, Any]] = None,
    ) -> str:
        ...

    def post(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...

    def post_form(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Optional[FormData] = None,
    ) -> str:
        ...

    def put(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...

    def delete(
        self,
        url: str,
        headers: Optional[Headers] = None,
        payload: Any = None,
    ) -> str:
        ...


@dataclass
class PreparedRequest:
    """Everything a backend needs to perform one exchange."""

    method: str
    url: str  # final URL, query string included
    headers: Headers
    content: Optional[bytes] = None


def validate_url(url: str, method: str) -> str:
    """
    Check that ``url`` is an absolute http(s) URL.

    Raises:
        InvalidURLError: If the URL is relative, malformed or not http(s)
    """
    if not isinstance(url, str):
        raise InvalidURLError(f"URL must be a string, got {type(url).__name__}", method=method)
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise InvalidURLError(f"Invalid URL {url!r}: {e}", url=url, method=method) from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise InvalidURLError(
            f"URL must be absolute with an http or https scheme: {url!r}",
            url=url,
            method=method,
        )
    return url


def encode_query(
    params: Optional[Mapping[str, Any]], url: str, method: str
) -> List[Tuple[str, str]]:
    """
    Encode a payload as query parameters.

    Scalars only: strings as-is, booleans as ``true``/``false``, numbers via
    ``str()``. ``None`` values are skipped.

    Raises:
        SerializationError: If the payload is not a mapping or holds a nested value
    """
    if params is None:
        return []
    if not isinstance(params, Mapping):
        raise SerializationError(
            f"Query payload must be a mapping, got {type(params).__name__}",
            url=url,
            method=method,
        )

    encoded: List[Tuple[str, str]] = []
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            encoded.append((str(key), "true" if value else "false"))
        elif isinstance(value, (str, int, float)):
            encoded.append((str(key), str(value)))
        else:
            raise SerializationError(
                f"Query parameter {key!r} has unsupported type {type(value).__name__}",
                url=url,
                method=method,
            )
    return encoded


def append_query(url: str, params: List[Tuple[str, str]]) -> str:
    """
    Append encoded query parameters after those already in ``url``.

    A key present in both the URL and ``params`` is sent twice, URL value
    first.

    Example:
        >>> append_query("https://api.example.com/search?type=track", [("type", "artist")])
        'https://api.example.com/search?type=track&type=artist'
    """
    if not params:
        return url
    parsed = httpx.URL(url)
    merged = httpx.QueryParams(list(parsed.params.multi_items()) + params)
    return str(parsed.copy_with(params=merged))


def validate_headers(headers: Headers, url: str, method: str) -> Headers:
    """
    Check that every header name and value is ASCII text.

    Raises:
        SerializationError: If a name or value cannot go on the wire
    """
    for name, value in headers.items():
        try:
            name.encode("ascii")
            value.encode("ascii")
        except (UnicodeEncodeError, AttributeError, TypeError) as e:
            raise SerializationError(
                f"Header {name!r} cannot be encoded as ASCII: {e}",
                url=url,
                method=method,
            ) from e
    return headers


def encode_json(payload: Any, url: str, method: str) -> Optional[bytes]:
    """
    Encode a payload as a compact UTF-8 JSON body, or ``None`` for no body.

    Raises:
        SerializationError: If the payload is not JSON serializable
    """
    if payload is None:
        return None
    try:
        return json.dumps(
            payload, separators=(",", ":"), ensure_ascii=False, allow_nan=False
        ).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise SerializationError(
            f"Payload is not JSON serializable: {e}", url=url, method=method
        ) from e


def encode_form(payload: Optional[Mapping[str, str]], url: str, method: str) -> bytes:
    """
    Encode form data as ``key1=value1&key2=value2``.

    Raises:
        SerializationError: If the payload is not a mapping of strings
    """
    if payload is None:
        return b""
    if not isinstance(payload, Mapping):
        raise SerializationError(
            f"Form payload must be a mapping, got {type(payload).__name__}",
            url=url,
            method=method,
        )
    for key, value in payload.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise SerializationError(
                f"Form fields must be strings: {key!r}={value!r}",
                url=url,
                method=method,
            )
    return urlencode(list(payload.items())).encode("ascii")


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a ``Retry-After`` header given in seconds; dates yield ``None``."""
    if value is None:
        return None
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    return seconds if seconds >= 0 else None


def auth_failure_message(status_code: int, body: str) -> Optional[str]:
    """
    Return a message if the response is an authentication failure.

    Any 401 is an authentication failure. A 400 or 403 is one only when its
    payload carries an OAuth error code from :data:`AUTH_ERROR_CODES`.
    """
    code: Optional[str] = None
    message: Optional[str] = None
    try:
        data = json.loads(body) if body else None
    except ValueError:
        data = None

    if isinstance(data, dict):
        error = data.get("error")
        if isinstance(error, dict):
            if error.get("message") is not None:
                message = str(error["message"])
        elif isinstance(error, str):
            code = error
            message = str(data.get("error_description") or error)

    if status_code == 401:
        return message or "Unauthorized"
    if status_code in (400, 403) and code in AUTH_ERROR_CODES:
        return message
    return None


class TransportCore:
    """
    Request preparation and response classification for both backends.

    Subclasses own an httpx client and call :meth:`_prepare` before the
    exchange and :meth:`_handle_response` / :meth:`_translate_error` after.
    """

    backend_name = "base"

    def __init__(self, config: Optional[HTTPConfig] = None):
        self.config = config or HTTPConfig()
        self.logger = logger.bind(component="http_transport", backend=self.backend_name)

    @property
    def default_headers(self) -> Headers:
        """Headers sent when the caller does not override them."""
        return merge_headers(
            {USER_AGENT: self.config.user_agent, ACCEPT: JSON_CONTENT_TYPE},
            self.config.default_headers,
        )

    def _client_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments shared by ``httpx.Client`` and ``httpx.AsyncClient``."""
        return {
            "timeout": httpx.Timeout(float(self.config.timeout)),
            "limits": httpx.Limits(
                max_connections=self.config.max_connections,
                max_keepalive_connections=self.config.max_keepalive_connections,
            ),
            "follow_redirects": self.config.follow_redirects,
            "max_redirects": self.config.max_redirects,
            "verify": self.config.verify_ssl,
        }

    def _prepare(
        self,
        method: str,
        url: str,
        headers: Optional[Headers],
        payload: Any = None,
        form: bool = False,
    ) -> PreparedRequest:
        """Validate and encode one call into a :class:`PreparedRequest`."""
        validate_url(url, method)
        defaults = self.default_headers

        if method == "GET":
            # httpx params= would replace a key already in the URL
            target = append_query(url, encode_query(payload, url, method))
            merged = validate_headers(merge_headers(defaults, headers), url, method)
            return PreparedRequest(method, target, merged)

        if form:
            content: Optional[bytes] = encode_form(payload, url, method)
            defaults[CONTENT_TYPE] = FORM_CONTENT_TYPE
        else:
            content = encode_json(payload, url, method)
            if content is not None:
                defaults[CONTENT_TYPE] = JSON_CONTENT_TYPE

        # Checked before any I/O so both backends fail the same way
        merged = validate_headers(merge_headers(defaults, headers), url, method)
        return PreparedRequest(method, url, merged, content=content)

    def _handle_response(self, request: PreparedRequest, response: httpx.Response) -> str:
        """
        Classify a completed exchange.

        Returns:
            Response body text on 2xx

        Raises:
            InvalidAuthError, RateLimitedError, HTTPStatusError, SerializationError
        """
        status_code = response.status_code
        body = self._decode_body(request, response, strict=response.is_success)

        self.logger.debug(
            "http_response",
            method=request.method,
            url=request.url,
            status_code=status_code,
            size=len(response.content),
        )

        if response.is_success:
            return body

        auth_message = auth_failure_message(status_code, body)
        if auth_message is not None:
            error: ClientError = InvalidAuthError(
                auth_message,
                status_code=status_code,
                body=body,
                url=request.url,
                method=request.method,
            )
        elif status_code == 429:
            error = RateLimitedError(
                "Rate limited",
                retry_after=parse_retry_after(response.headers.get("retry-after")),
                body=body,
                url=request.url,
                method=request.method,
            )
        else:
            error = HTTPStatusError(
                f"HTTP {status_code} for {request.method} {request.url}",
                status_code=status_code,
                body=body,
                url=request.url,
                method=request.method,
            )

        self.logger.warning(
            "http_error",
            method=request.method,
            url=request.url,
            status_code=status_code,
            error_type=type(error).__name__,
        )
        raise error

    def _decode_body(
        self, request: PreparedRequest, response: httpx.Response, strict: bool = True
    ) -> str:
        """
        Decode the body using the response charset (UTF-8 default).

        Success bodies must decode cleanly; error bodies are decoded with
        replacement characters.
        """
        encoding = response.charset_encoding or "utf-8"
        if not strict:
            try:
                return response.content.decode(encoding, errors="replace")
            except LookupError:
                return response.content.decode("utf-8", errors="replace")
        try:
            return response.content.decode(encoding)
        except (LookupError, UnicodeDecodeError) as e:
            raise SerializationError(
                f"Response body is not valid {encoding} text: {e}",
                url=request.url,
                method=request.method,
            ) from e

    def _translate_error(self, request: PreparedRequest, exc: httpx.RequestError) -> ClientError:
        """Map an httpx request failure onto the client taxonomy."""
        if isinstance(exc, httpx.DecodingError):
            error: ClientError = SerializationError(
                f"Response body could not be decoded: {exc}",
                url=request.url,
                method=request.method,
            )
        else:
            error = NetworkError(
                f"{type(exc).__name__}: {exc}",
                url=request.url,
                method=request.method,
            )

        self.logger.warning(
            "http_error",
            method=request.method,
            url=request.url,
            error_type=type(error).__name__,
            cause=type(exc).__name__,
        )
        return error
