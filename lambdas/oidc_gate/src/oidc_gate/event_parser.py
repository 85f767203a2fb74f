"""Parsing utilities for CloudFront request descriptors."""

from urllib.parse import parse_qs

from ._types import CloudFrontRequest

SESSION_COOKIE_NAME = "token"


def get_header(request: CloudFrontRequest, name: str) -> str | None:
    """Return the first value of header ``name`` (case-insensitive)."""
    entries = request.get("headers", {}).get(name.lower(), [])
    if not entries:
        return None
    return entries[0].get("value")


def parse_query(request: CloudFrontRequest) -> dict[str, str]:
    """Decode the raw query string, keeping the first value of each parameter."""
    parsed = parse_qs(request.get("querystring", ""), keep_blank_values=True)
    return {name: values[0] for name, values in parsed.items()}


def parse_cookie_header(value: str) -> dict[str, str]:
    """Split a Cookie header into name/value pairs (first occurrence wins).

    Pairs without ``=`` are skipped individually. ``http.cookies.SimpleCookie``
    discards the whole header on the first pair it cannot parse, which would
    hide a valid session cookie sent alongside a third-party cookie.
    """
    cookies: dict[str, str] = {}
    for part in value.split(";"):
        name, sep, cookie_value = part.strip().partition("=")
        if sep and name and name not in cookies:
            cookies[name] = cookie_value.strip().strip('"')
    return cookies


def extract_session_token(request: CloudFrontRequest) -> str | None:
    """Extract the session token from any Cookie header entry."""
    for entry in request.get("headers", {}).get("cookie", []):
        token = parse_cookie_header(entry.get("value", "")).get(SESSION_COOKIE_NAME)
        if token:
            return token
    return None
