"""Value objects shared by the gate components."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class DiscoveryDocument:
    """Subset of the IdP's OIDC metadata the gate depends on."""

    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str
    issuer: str | None = None


@dataclass(frozen=True)
class SigningKey:
    """One published IdP signing key.

    ``jwk`` keeps the raw JWK parameters (n/e for RSA, crv/x/y for EC)
    so the verifier can build a public key from them.
    """

    key_id: str
    key_type: str
    algorithm: str | None
    jwk: Mapping[str, Any]


@dataclass(frozen=True)
class KeySet:
    """Ordered, immutable set of signing keys."""

    keys: tuple[SigningKey, ...]

    def find(self, key_id: str) -> list[SigningKey]:
        """Return every key whose id equals ``key_id``."""
        return [key for key in self.keys if key.key_id == key_id]


@dataclass(frozen=True)
class MetadataSnapshot:
    """Fully populated cache contents."""

    discovery: DiscoveryDocument
    key_set: KeySet


@dataclass(frozen=True)
class TokenPolicy:
    """Claim policy applied after signature verification."""

    hosted_domain: str
    audience: str | None = None
    leeway_seconds: int = 0


@dataclass(frozen=True)
class VerifiedIdentity:
    email: str
    subject: str | None = None
    claims: Mapping[str, Any] = field(default_factory=dict)
