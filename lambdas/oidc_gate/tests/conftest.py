"""Fixtures for OIDC gate tests."""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from jwt.algorithms import RSAAlgorithm

from oidc_gate._types import CloudFrontEvent, CloudFrontRequest, LambdaContext
from oidc_gate.config import GateConfig
from oidc_gate.models import DiscoveryDocument, KeySet, MetadataSnapshot, SigningKey

CLIENT_ID = "test-client.apps.googleusercontent.com"
KEY_ID = "test-key-1"

TokenFactory = Callable[..., str]


class MockLambdaContext(LambdaContext):
    """Mock Lambda context for testing."""

    function_name = "us-east-1.oidc-gate"
    memory_limit_in_mb = 128
    invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:oidc-gate:3"
    aws_request_id = "test-request-id-12345"

    def get_remaining_time_in_millis(self) -> int:
        return 5000


@pytest.fixture
def mock_context() -> LambdaContext:
    """Provide mock Lambda context."""
    return MockLambdaContext()


@pytest.fixture(scope="session")
def signing_private_key() -> RSAPrivateKey:
    """RSA key the IdP signs tokens with."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def unrelated_private_key() -> RSAPrivateKey:
    """RSA key that is not published in the key set."""
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


def public_jwk(private_key: RSAPrivateKey, kid: str) -> dict[str, Any]:
    """Export the public half of ``private_key`` as a JWK."""
    jwk = json.loads(RSAAlgorithm.to_jwk(private_key.public_key()))
    jwk.update({"kid": kid, "alg": "RS256", "use": "sig"})
    return jwk


@pytest.fixture
def jwks_payload(signing_private_key: RSAPrivateKey) -> dict[str, Any]:
    """JWKS document as published by the IdP."""
    return {"keys": [public_jwk(signing_private_key, KEY_ID)]}


@pytest.fixture
def key_set(jwks_payload: dict[str, Any]) -> KeySet:
    return KeySet(
        keys=tuple(
            SigningKey(key_id=jwk["kid"], key_type=jwk["kty"], algorithm=jwk["alg"], jwk=jwk)
            for jwk in jwks_payload["keys"]
        )
    )


@pytest.fixture
def discovery_payload() -> dict[str, Any]:
    """Discovery document as published by the IdP."""
    return {
        "issuer": "https://accounts.google.com",
        "authorization_endpoint": "https://accounts.google.com/o/oauth2/v2/auth",
        "token_endpoint": "https://oauth2.googleapis.com/token",
        "jwks_uri": "https://www.googleapis.com/oauth2/v3/certs",
    }


@pytest.fixture
def discovery(discovery_payload: dict[str, Any]) -> DiscoveryDocument:
    return DiscoveryDocument(
        authorization_endpoint=discovery_payload["authorization_endpoint"],
        token_endpoint=discovery_payload["token_endpoint"],
        jwks_uri=discovery_payload["jwks_uri"],
        issuer=discovery_payload["issuer"],
    )


@pytest.fixture
def snapshot(discovery: DiscoveryDocument, key_set: KeySet) -> MetadataSnapshot:
    return MetadataSnapshot(discovery=discovery, key_set=key_set)


@pytest.fixture
def gate_config() -> GateConfig:
    return GateConfig(
        client_id=CLIENT_ID,
        client_secret="super-secret-value",
        redirect_uri="https://app.example.com/_callback",
        hosted_domain="example.com",
        app_origin="https://app.example.com",
        http_timeout_seconds=2.0,
    )


@pytest.fixture
def make_token(signing_private_key: RSAPrivateKey) -> TokenFactory:
    """Build signed identity tokens with overridable claims, key and key id."""

    def _make_token(
        private_key: RSAPrivateKey | None = None,
        kid: str | None = KEY_ID,
        algorithm: str = "RS256",
        **claims: Any,
    ) -> str:
        now = datetime.now(UTC)
        payload = {
            "iss": "https://accounts.google.com",
            "aud": CLIENT_ID,
            "sub": "1234567890",
            "email": "alice@example.com",
            "email_verified": True,
            "hd": "example.com",
            "iat": now,
            "exp": now + timedelta(hours=1),
        }
        payload.update(claims)
        payload = {name: value for name, value in payload.items() if value is not None}
        headers = {"kid": kid} if kid is not None else {}
        return jwt.encode(
            payload,
            private_key or signing_private_key,
            algorithm=algorithm,
            headers=headers,
        )

    return _make_token


def build_request(
    uri: str = "/reports/q3",
    querystring: str = "",
    cookie: str | None = None,
    host: str = "app.example.com",
) -> CloudFrontRequest:
    """CloudFront viewer request descriptor."""
    headers = {"host": [{"key": "Host", "value": host}]}
    if cookie is not None:
        headers["cookie"] = [{"key": "Cookie", "value": cookie}]
    return {
        "clientIp": "203.0.113.10",
        "method": "GET",
        "uri": uri,
        "querystring": querystring,
        "headers": headers,
    }


def build_event(request: CloudFrontRequest) -> CloudFrontEvent:
    """Wrap a request in a Lambda@Edge viewer-request event."""
    return {
        "Records": [
            {
                "cf": {
                    "config": {
                        "distributionDomainName": "d111111abcdef8.cloudfront.net",
                        "distributionId": "EDFDVBD6EXAMPLE",
                        "eventType": "viewer-request",
                        "requestId": "4TyzHTaYWb1GX1qTfsHhEqV6HUDd_BzoBZnwfnvQc_1oF26ClkoUSEQ==",
                    },
                    "request": request,
                }
            }
        ]
    }


@pytest.fixture
def request_factory() -> Callable[..., CloudFrontRequest]:
    return build_request


@pytest.fixture
def event_factory() -> Callable[[CloudFrontRequest], CloudFrontEvent]:
    return build_event


@pytest.fixture
def jwk_factory() -> Callable[[RSAPrivateKey, str], dict[str, Any]]:
    return public_jwk
