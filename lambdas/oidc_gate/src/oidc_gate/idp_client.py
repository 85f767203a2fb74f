"""Outbound calls to the OIDC identity provider."""

import http.client
import json
import time
import urllib.error
import urllib.parse
import urllib.request
from typing import Any

from ._types import DiscoveryPayload, TokenEndpointResponse
from .config import GateConfig
from .errors import BootstrapFailure, CodeExchangeRejected, TransportFailure
from .logging_config import LOGGER
from .models import DiscoveryDocument, KeySet, SigningKey

_DISCOVERY_FIELDS = ("authorization_endpoint", "token_endpoint", "jwks_uri")

# URLError, socket timeouts and connection resets are all OSErrors; http.client
# raises its own errors for truncated or garbled responses
_TRANSPORT_ERRORS = (OSError, http.client.HTTPException)


class IdPClient:
    """Stateless request/response client for the IdP.

    Every call takes an optional monotonic ``deadline``; the socket timeout
    is the smaller of the configured timeout and the time left.
    """

    def __init__(self, config: GateConfig) -> None:
        self.config = config

    def _timeout(self, deadline: float | None) -> float:
        timeout = self.config.http_timeout_seconds
        if deadline is None:
            return timeout
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise TransportFailure("Invocation deadline exceeded before IdP request")
        return min(timeout, remaining)

    def _get_json(self, url: str, deadline: float | None) -> Any:
        """GET ``url`` and decode the JSON body.

        Raises:
            TransportFailure: On network error, timeout or undecodable body
        """
        req = urllib.request.Request(url, headers={"Accept": "application/json"}, method="GET")
        try:
            with urllib.request.urlopen(req, timeout=self._timeout(deadline)) as response:
                return json.loads(response.read().decode("utf-8"))
        except _TRANSPORT_ERRORS as e:
            raise TransportFailure(f"GET {url} failed: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportFailure(f"GET {url} returned invalid JSON") from e

    def fetch_discovery(self, deadline: float | None = None) -> DiscoveryDocument:
        """Fetch the IdP discovery document.

        Raises:
            BootstrapFailure: If the document cannot be fetched or lacks required endpoints
        """
        url = self.config.discovery_url
        try:
            payload: DiscoveryPayload = self._get_json(url, deadline)
        except TransportFailure as e:
            raise BootstrapFailure(f"Unable to fetch discovery document: {e.message}") from e

        if not isinstance(payload, dict):
            raise BootstrapFailure("Discovery document is not a JSON object")
        missing = [name for name in _DISCOVERY_FIELDS if not payload.get(name)]
        if missing:
            raise BootstrapFailure(f"Discovery document missing: {', '.join(missing)}")

        return DiscoveryDocument(
            authorization_endpoint=payload["authorization_endpoint"],
            token_endpoint=payload["token_endpoint"],
            jwks_uri=payload["jwks_uri"],
            issuer=payload.get("issuer"),
        )

    def fetch_key_set(self, uri: str, deadline: float | None = None) -> KeySet:
        """Fetch and parse the JWKS published at ``uri``.

        Raises:
            BootstrapFailure: If the key set cannot be fetched or is malformed
        """
        try:
            payload = self._get_json(uri, deadline)
        except TransportFailure as e:
            raise BootstrapFailure(f"Unable to fetch key set: {e.message}") from e

        keys = payload.get("keys") if isinstance(payload, dict) else None
        if not isinstance(keys, list):
            raise BootstrapFailure("Key set has no 'keys' list")

        signing_keys = []
        for jwk in keys:
            if not isinstance(jwk, dict) or not jwk.get("kid") or not jwk.get("kty"):
                raise BootstrapFailure("Key set contains a malformed key")
            signing_keys.append(
                SigningKey(
                    key_id=jwk["kid"],
                    key_type=jwk["kty"],
                    algorithm=jwk.get("alg"),
                    jwk=dict(jwk),
                )
            )
        return KeySet(keys=tuple(signing_keys))

    def exchange_code(
        self, code: str, token_endpoint: str, deadline: float | None = None
    ) -> str:
        """Exchange an authorization code for an identity token.

        Args:
            code: Authorization code from the callback query string
            token_endpoint: Token endpoint from the discovery document
            deadline: Monotonic deadline bounding the request

        Returns:
            Compact id_token string

        Raises:
            CodeExchangeRejected: If the IdP answered with an OAuth error
            TransportFailure: On network failure or an unusable response
        """
        data = urllib.parse.urlencode(
            {
                "code": code,
                "client_id": self.config.client_id,
                "client_secret": self.config.client_secret,
                "redirect_uri": self.config.redirect_uri,
                "grant_type": "authorization_code",
            }
        ).encode("utf-8")
        headers = {
            "Content-Type": "application/x-www-form-urlencoded",
            "Accept": "application/json",
        }

        req = urllib.request.Request(token_endpoint, data=data, headers=headers, method="POST")
        try:
            with urllib.request.urlopen(req, timeout=self._timeout(deadline)) as response:
                raw = response.read()
        except urllib.error.HTTPError as e:
            # OAuth errors arrive as 4xx with a JSON body
            LOGGER.warning("Token endpoint returned HTTP %s", e.code)
            try:
                raw = e.read()
            except _TRANSPORT_ERRORS as read_error:
                raise TransportFailure(
                    f"Token exchange failed: HTTP {e.code} body unreadable"
                ) from read_error
        except _TRANSPORT_ERRORS as e:
            raise TransportFailure(f"Token exchange failed: {e}") from e

        try:
            body: TokenEndpointResponse = json.loads(raw.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise TransportFailure("Token endpoint returned invalid JSON") from e
        if not isinstance(body, dict):
            raise TransportFailure("Token endpoint returned an unexpected body")

        if "error" in body:
            raise CodeExchangeRejected(body.get("error_description") or body["error"])

        id_token = body.get("id_token")
        if not id_token:
            raise TransportFailure("Token endpoint response has no id_token")
        return id_token
