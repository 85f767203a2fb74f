"""Gate error hierarchy.

Every error raised by a gate component is a ``GateError``. The router maps
each one to exactly one terminal response using ``status``.
"""


class GateError(Exception):
    """Base class for errors recovered at the router boundary."""

    status = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(GateError):
    """Bundled configuration is missing or invalid."""


class BootstrapFailure(GateError):
    """Discovery document or key set could not be fetched or parsed."""


class TransportFailure(GateError):
    """Network error or timeout talking to the IdP."""


class MissingCode(GateError):
    """Callback request without an authorization code."""

    status = 401


class CodeExchangeRejected(GateError):
    """IdP rejected the authorization code."""

    status = 401


class TokenRejected(GateError):
    """Session token failed verification."""

    status = 401

    def __init__(self, message: str, email: str | None = None) -> None:
        super().__init__(message)
        self.email = email


class MalformedToken(TokenRejected):
    """Token could not be parsed."""


class KeyNotFound(TokenRejected):
    """Token key id does not match exactly one cached signing key."""


class SignatureInvalid(TokenRejected):
    """Token signature or algorithm check failed."""


class ClaimRejected(TokenRejected):
    """Token is authentic but its claims fail the gate policy."""
