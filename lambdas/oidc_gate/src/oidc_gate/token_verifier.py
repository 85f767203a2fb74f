"""Local verification of IdP-issued identity tokens."""

from typing import Any

import jwt

from .errors import ClaimRejected, KeyNotFound, MalformedToken, SignatureInvalid
from .models import KeySet, TokenPolicy, VerifiedIdentity

ALLOWED_ALGORITHM = "RS256"


def unverified_email(token: str) -> str | None:
    """Read the email claim without verification, for diagnostics only."""
    try:
        claims = jwt.decode(token, options={"verify_signature": False})
    except jwt.exceptions.PyJWTError:
        return None
    email = claims.get("email") if isinstance(claims, dict) else None
    return email if isinstance(email, str) else None


def _public_key(key_set: KeySet, key_id: str | None, email: str | None) -> Any:
    """Build the verification key for ``key_id`` from the cached key set."""
    if not key_id:
        raise KeyNotFound("Token header has no key id", email)

    matches = key_set.find(key_id)
    if len(matches) != 1:
        raise KeyNotFound(f"Key id '{key_id}' matches {len(matches)} cached keys", email)

    signing_key = matches[0]
    if signing_key.algorithm not in (None, ALLOWED_ALGORITHM):
        raise SignatureInvalid(
            f"Key '{key_id}' is published for {signing_key.algorithm}, not {ALLOWED_ALGORITHM}",
            email,
        )
    try:
        return jwt.PyJWK(dict(signing_key.jwk), algorithm=ALLOWED_ALGORITHM).key
    except jwt.exceptions.PyJWTError as e:
        raise SignatureInvalid(f"Key '{key_id}' is not a usable {ALLOWED_ALGORITHM} key", email) from e


def _check_policy(claims: dict[str, Any], policy: TokenPolicy) -> str:
    """Apply the hosted-domain policy to verified claims and return the email."""
    email = claims.get("email")
    if not isinstance(email, str) or not email:
        raise ClaimRejected("Token has no email claim")

    if claims.get("email_verified") is not True:
        raise ClaimRejected("Email address is not verified", email)

    if not email.lower().endswith(f"@{policy.hosted_domain.lower()}"):
        raise ClaimRejected(f"Email is outside hosted domain {policy.hosted_domain}", email)

    return email


def verify_token(token: str, key_set: KeySet, policy: TokenPolicy) -> VerifiedIdentity:
    """Verify a compact identity token against the cached key set.

    Algorithm and key are checked before the signature, and the signature
    before any claim, so no claim value is trusted until the token is
    proven authentic.

    Args:
        token: Compact JWS (header.payload.signature)
        key_set: Cached IdP signing keys
        policy: Hosted domain, audience and leeway to enforce

    Returns:
        VerifiedIdentity carrying the verified email and claims

    Raises:
        MalformedToken: Token cannot be parsed
        SignatureInvalid: Wrong algorithm, unusable key or bad signature
        KeyNotFound: Key id does not match exactly one cached key
        ClaimRejected: Authentic token whose claims fail the policy
    """
    try:
        header = jwt.get_unverified_header(token)
    except jwt.exceptions.InvalidTokenError as e:
        raise MalformedToken("Token is not a valid compact JWS") from e

    email = unverified_email(token)

    algorithm = header.get("alg")
    if algorithm != ALLOWED_ALGORITHM:
        raise SignatureInvalid(f"Token algorithm '{algorithm}' is not allowed", email)

    public_key = _public_key(key_set, header.get("kid"), email)

    try:
        claims = jwt.decode(
            token,
            public_key,
            algorithms=[ALLOWED_ALGORITHM],
            audience=policy.audience,
            leeway=policy.leeway_seconds,
            options={
                "require": ["exp"],
                "verify_aud": policy.audience is not None,
            },
        )
    except jwt.exceptions.InvalidSignatureError as e:
        raise SignatureInvalid("Token signature verification failed", email) from e
    except jwt.exceptions.DecodeError as e:
        raise MalformedToken("Token could not be decoded", email) from e
    except jwt.exceptions.InvalidAlgorithmError as e:
        raise SignatureInvalid("Token algorithm is not allowed", email) from e
    except jwt.exceptions.InvalidTokenError as e:
        # Raised by PyJWT only after the signature has been verified
        raise ClaimRejected(f"Token claims rejected: {e}", email) from e

    verified_email = _check_policy(claims, policy)
    return VerifiedIdentity(email=verified_email, subject=claims.get("sub"), claims=claims)
