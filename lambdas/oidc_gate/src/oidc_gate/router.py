"""Request classification and the authentication state machine."""

from enum import Enum
from urllib.parse import urlencode, urlsplit

from ._types import CloudFrontRequest, CloudFrontResponse
from .config import GateConfig
from .errors import GateError, MissingCode, TokenRejected
from .event_parser import extract_session_token, get_header, parse_query
from .idp_client import IdPClient
from .logging_config import LOGGER
from .metadata_cache import MetadataCache
from .models import MetadataSnapshot, TokenPolicy
from .redirect_state import encode_state, validate_redirect_state
from .responses import (
    internal_error_response,
    redirect_response,
    session_cookie,
    unauthorized_response,
)
from .token_verifier import verify_token

LOGIN_SCOPE = "openid email"

GateResult = CloudFrontRequest | CloudFrontResponse


class RequestState(Enum):
    CALLBACK = "callback"
    AUTHENTICATED_CANDIDATE = "authenticated_candidate"
    NEEDS_LOGIN = "needs_login"


def classify_request(request: CloudFrontRequest, callback_path: str) -> RequestState:
    """Classify a request into exactly one RequestState."""
    if request.get("uri", "").startswith(callback_path):
        return RequestState.CALLBACK
    if extract_session_token(request):
        return RequestState.AUTHENTICATED_CANDIDATE
    return RequestState.NEEDS_LOGIN


class Gate:
    """Drives one request to a single terminal outcome.

    Outcomes: forward the request unmodified, redirect to the IdP, redirect
    back with a session cookie, 401 or 500.
    """

    def __init__(self, config: GateConfig, cache: MetadataCache, idp_client: IdPClient) -> None:
        self.config = config
        self.cache = cache
        self.idp_client = idp_client
        self.policy = TokenPolicy(hosted_domain=config.hosted_domain, audience=config.client_id)
        self._handlers = {
            RequestState.CALLBACK: self._handle_callback,
            RequestState.AUTHENTICATED_CANDIDATE: self._handle_session,
            RequestState.NEEDS_LOGIN: self._handle_login,
        }

    def handle(self, request: CloudFrontRequest, deadline: float | None = None) -> GateResult:
        """Return the original request to forward it, or a generated response."""
        try:
            snapshot = self.cache.ensure_ready(deadline)
        except GateError as e:
            return internal_error_response(f"Unable to verify JWT: {e.message}")

        state = classify_request(request, self.config.callback_path)
        try:
            return self._handlers[state](request, snapshot, deadline)
        except GateError as e:
            return self._error_response(state, e)

    def _error_response(self, state: RequestState, error: GateError) -> CloudFrontResponse:
        LOGGER.warning(
            "Request rejected",
            extra={"state": state.value, "error": type(error).__name__, "reason": error.message},
        )
        if isinstance(error, TokenRejected):
            if error.email:
                return unauthorized_response(f"Unauthorized. User {error.email} is not permitted.")
            return unauthorized_response("Unauthorized. Session token is not valid.")
        if error.status == 401:
            return unauthorized_response(error.message)
        return internal_error_response(error.message)

    def _handle_callback(
        self, request: CloudFrontRequest, snapshot: MetadataSnapshot, deadline: float | None
    ) -> CloudFrontResponse:
        query = parse_query(request)
        code = query.get("code")
        if not code:
            raise MissingCode("No code found.")

        id_token = self.idp_client.exchange_code(code, snapshot.discovery.token_endpoint, deadline)
        LOGGER.info("Authorization code exchanged")
        return redirect_response(
            self._post_login_location(query.get("state", "")),
            body="ID token retrieved.",
            cookie=session_cookie(id_token),
        )

    def _post_login_location(self, state: str) -> str:
        """Resolve ``state`` to the post-login target, falling back to the app origin."""
        is_valid, reason = validate_redirect_state(state, self.config.redirect_hosts)
        if not is_valid:
            LOGGER.warning("Ignoring post-login state", extra={"reason": reason})
            return f"{self.config.app_origin}/"
        return f"https://{state}"

    def _handle_session(
        self, request: CloudFrontRequest, snapshot: MetadataSnapshot, deadline: float | None
    ) -> CloudFrontRequest:
        token = extract_session_token(request) or ""
        identity = verify_token(token, snapshot.key_set, self.policy)
        LOGGER.info("Access granted", extra={"email": identity.email, "uri": request.get("uri")})
        return request

    def _handle_login(
        self, request: CloudFrontRequest, snapshot: MetadataSnapshot, deadline: float | None
    ) -> CloudFrontResponse:
        host = get_header(request, "host") or urlsplit(self.config.app_origin).netloc
        query = urlencode(
            {
                "client_id": self.config.client_id,
                "redirect_uri": self.config.redirect_uri,
                "scope": LOGIN_SCOPE,
                "hd": self.config.hosted_domain,
                "state": encode_state(host, request.get("uri", "/")),
                "response_type": "code",
            }
        )
        endpoint = snapshot.discovery.authorization_endpoint
        separator = "&" if "?" in endpoint else "?"
        return redirect_response(f"{endpoint}{separator}{query}", body="Authenticating with IdP")
