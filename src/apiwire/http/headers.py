"""Header names and authorization value builders."""

import base64
from typing import Dict, Mapping, Optional

AUTHORIZATION = "authorization"
CONTENT_TYPE = "content-type"
USER_AGENT = "user-agent"
ACCEPT = "accept"

JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


def bearer_auth(token: str) -> str:
    """
    Build a token authorization header value.

    Example:
        >>> bearer_auth("abc")
        'Bearer abc'
    """
    return f"Bearer {token}"


def basic_auth(user: str, password: str) -> str:
    """
    Build a basic authorization header value.

    The credentials are joined with ``:`` and encoded with the standard
    base64 alphabet, padding included.

    Example:
        >>> basic_auth("user", "pass")
        'Basic dXNlcjpwYXNz'
    """
    value = f"{user}:{password}".encode("utf-8")
    return f"Basic {base64.b64encode(value).decode('ascii')}"


def merge_headers(
    defaults: Mapping[str, str],
    overrides: Optional[Mapping[str, str]] = None,
) -> Dict[str, str]:
    """
    Merge per-call headers over default headers.

    Header names are compared case-insensitively and emitted lower-case.
    A name present in ``overrides`` replaces the default of the same name;
    names absent from ``overrides`` keep their default value. Neither
    mapping is modified.

    Args:
        defaults: Headers the backend sends when the caller says nothing
        overrides: Headers supplied for this call (optional)

    Returns:
        New dict of lower-case header names to values

    Example:
        >>> merge_headers({"Accept": "application/json"}, {"accept": "text/plain"})
        {'accept': 'text/plain'}
    """
    merged = {name.lower(): value for name, value in defaults.items()}
    if overrides:
        for name, value in overrides.items():
            merged[name.lower()] = value
    return merged
