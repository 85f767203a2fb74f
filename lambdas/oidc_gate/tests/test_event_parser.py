"""Tests for request parsing, response builders and redirect state."""

import pytest

from oidc_gate.event_parser import (
    extract_session_token,
    get_header,
    parse_cookie_header,
    parse_query,
)
from oidc_gate.redirect_state import encode_state, validate_redirect_state
from oidc_gate.responses import (
    internal_error_response,
    redirect_response,
    session_cookie,
    unauthorized_response,
)


class TestRequestParsing:
    """Tests for CloudFront request field extraction."""

    def test_get_header_is_case_insensitive(self, request_factory) -> None:
        assert get_header(request_factory(), "Host") == "app.example.com"

    def test_get_header_missing(self, request_factory) -> None:
        assert get_header(request_factory(), "authorization") is None

    def test_parse_query_decodes_values(self, request_factory) -> None:
        request = request_factory(querystring="code=4%2F0Ad&state=app.example.com%2Fa&code=second")
        assert parse_query(request) == {"code": "4/0Ad", "state": "app.example.com/a"}

    def test_parse_query_empty(self, request_factory) -> None:
        assert parse_query(request_factory(querystring="")) == {}

    def test_parse_cookie_header(self) -> None:
        assert parse_cookie_header('theme=dark; token="abc.def.ghi"; flag') == {
            "theme": "dark",
            "token": "abc.def.ghi",
        }

    def test_extract_session_token(self, request_factory) -> None:
        request = request_factory(cookie="theme=dark; token=abc.def.ghi")
        assert extract_session_token(request) == "abc.def.ghi"

    def test_extract_session_token_from_later_cookie_header(self, request_factory) -> None:
        request = request_factory(cookie="theme=dark")
        request["headers"]["cookie"].append({"key": "Cookie", "value": "token=abc.def.ghi"})
        assert extract_session_token(request) == "abc.def.ghi"

    def test_malformed_pair_does_not_hide_session_cookie(self, request_factory) -> None:
        request = request_factory(cookie='_ga="GA1.2; tracking=a b c; token=abc.def.ghi')
        assert extract_session_token(request) == "abc.def.ghi"

    def test_extract_session_token_absent(self, request_factory) -> None:
        assert extract_session_token(request_factory()) is None


class TestResponses:
    """Tests for CloudFront response builders."""

    def test_session_cookie_attributes(self) -> None:
        cookie = session_cookie("abc.def.ghi")
        assert cookie.startswith("token=abc.def.ghi;")
        for attribute in ("Path=/", "Secure", "HttpOnly", "SameSite=Lax"):
            assert attribute in cookie

    def test_redirect_response(self) -> None:
        response = redirect_response("https://idp.example.com/auth", body="Authenticating")
        assert response["status"] == "302"
        assert response["statusDescription"] == "Found"
        assert response["headers"]["location"] == [
            {"key": "Location", "value": "https://idp.example.com/auth"}
        ]
        assert "set-cookie" not in response["headers"]

    def test_redirect_response_with_cookie(self) -> None:
        response = redirect_response("https://app.example.com/", body="ok", cookie="token=x")
        assert response["headers"]["set-cookie"] == [{"key": "Set-Cookie", "value": "token=x"}]

    def test_error_responses(self) -> None:
        assert unauthorized_response("nope") == {
            "status": "401",
            "statusDescription": "Unauthorized",
            "body": "nope",
        }
        assert internal_error_response("oops")["status"] == "500"


class TestRedirectState:
    """Tests for post-login state encoding and validation."""

    ALLOWED = ("app.example.com",)

    def test_encode_state(self) -> None:
        assert encode_state("app.example.com", "/reports/q3") == "app.example.com/reports/q3"

    def test_encode_state_adds_leading_slash(self) -> None:
        assert encode_state("app.example.com", "reports") == "app.example.com/reports"

    @pytest.mark.parametrize("state", ["app.example.com/", "APP.example.com/a/b", "app.example.com/x?y=1"])
    def test_accepts_allowed_host_and_path(self, state: str) -> None:
        assert validate_redirect_state(state, self.ALLOWED) == (True, "")

    @pytest.mark.parametrize(
        ("state", "reason"),
        [
            ("", "host/path"),
            ("app.example.com", "host/path"),
            ("/reports", "host/path"),
            ("app.example.com//evil.org", "//"),
            ("evil.org/app.example.com", "not an allowed"),
            ("a@app.example.com/x", "credentials"),
            ("app.example.com/x y", "forbidden"),
            ("app.example.com/x\\evil", "forbidden"),
        ],
    )
    def test_rejects_untrusted_state(self, state: str, reason: str) -> None:
        is_valid, message = validate_redirect_state(state, self.ALLOWED)
        assert is_valid is False
        assert reason in message
