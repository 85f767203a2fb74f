"""Lambda@Edge viewer-request handler enforcing OIDC login."""

import threading
import time

from ._types import CloudFrontEvent, LambdaContext
from .config import load_config
from .errors import ConfigurationError, GateError
from .idp_client import IdPClient
from .logging_config import LOGGER
from .metadata_cache import MetadataCache
from .responses import internal_error_response
from .router import Gate, GateResult

# Time kept back from the invocation budget to return a response
DEADLINE_MARGIN_MS = 250

# Execution-unit state, reused across warm invocations
_gate: Gate | None = None
_gate_lock = threading.Lock()


def _get_gate() -> Gate:
    """Build the gate once per execution unit.

    Config loading may call SSM, so it runs outside the lock; if two callers
    race, the first published gate wins.
    """
    global _gate
    gate = _gate
    if gate is not None:
        return gate

    config = load_config()
    idp_client = IdPClient(config)
    candidate = Gate(config, MetadataCache(idp_client), idp_client)
    with _gate_lock:
        if _gate is None:
            _gate = candidate
        return _gate


def _deadline(context: LambdaContext) -> float | None:
    """Convert the remaining invocation time into a monotonic deadline."""
    get_remaining = getattr(context, "get_remaining_time_in_millis", None)
    if get_remaining is None:
        return None
    remaining_ms = max(get_remaining() - DEADLINE_MARGIN_MS, 0)
    return time.monotonic() + remaining_ms / 1000


def handler(event: CloudFrontEvent, context: LambdaContext) -> GateResult:
    """Authenticate a CloudFront viewer request.

    Flow:
    1. Unwrap the request from the CloudFront event
    2. Ensure IdP metadata is cached for this execution unit
    3. Handle the OAuth callback, verify the session cookie or redirect to login
    4. Return the request to forward it, or a generated response
    """
    try:
        request = event["Records"][0]["cf"]["request"]
    except (KeyError, IndexError, TypeError):
        LOGGER.error("Event is not a CloudFront request event")
        return internal_error_response("Malformed edge event.")

    try:
        return _get_gate().handle(request, _deadline(context))
    except ConfigurationError as e:
        LOGGER.error("Gate configuration invalid", extra={"reason": e.message})
        return internal_error_response("Authentication gate is not configured.")
    except GateError as e:
        LOGGER.error("Gate could not be initialized", extra={"reason": e.message})
        return internal_error_response("Unable to load gate configuration.")
    except Exception:
        LOGGER.exception(
            "Unhandled error in edge gate",
            extra={"requestId": getattr(context, "aws_request_id", "")},
        )
        return internal_error_response("Internal error.")
