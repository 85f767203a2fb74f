"""Response builders for CloudFront generated responses."""

from http.cookies import SimpleCookie

from ._types import CloudFrontResponse
from .event_parser import SESSION_COOKIE_NAME


def session_cookie(token: str) -> str:
    """Serialize the session cookie carrying ``token``."""
    cookie: SimpleCookie = SimpleCookie()
    cookie[SESSION_COOKIE_NAME] = token
    morsel = cookie[SESSION_COOKIE_NAME]
    morsel["path"] = "/"
    morsel["secure"] = True
    morsel["httponly"] = True
    morsel["samesite"] = "Lax"
    return morsel.OutputString()


def redirect_response(location: str, body: str, cookie: str | None = None) -> CloudFrontResponse:
    """Return a 302 redirect, optionally setting a cookie."""
    response: CloudFrontResponse = {
        "status": "302",
        "statusDescription": "Found",
        "body": body,
        "headers": {
            "location": [{"key": "Location", "value": location}],
            "cache-control": [{"key": "Cache-Control", "value": "no-store"}],
        },
    }
    if cookie is not None:
        response["headers"]["set-cookie"] = [{"key": "Set-Cookie", "value": cookie}]
    return response


def unauthorized_response(body: str) -> CloudFrontResponse:
    return {
        "status": "401",
        "statusDescription": "Unauthorized",
        "body": body,
    }


def internal_error_response(body: str) -> CloudFrontResponse:
    return {
        "status": "500",
        "statusDescription": "Internal Server Error",
        "body": body,
    }
