"""Encoding and validation of the OAuth ``state`` post-login target."""


def encode_state(host: str, uri: str) -> str:
    """Encode the originally requested host and path as ``host/path``."""
    path = uri if uri.startswith("/") else f"/{uri}"
    return f"{host}{path}"


def validate_redirect_state(state: str, allowed_hosts: tuple[str, ...]) -> tuple[bool, str]:
    """Validate that ``state`` is an allowed host followed by an absolute path.

    Returns:
        Tuple of (is_valid, reason_if_invalid)
    """
    if any(ord(char) < 0x21 or char == "\\" for char in state):
        return False, "State contains forbidden characters"

    host, sep, rest = state.partition("/")
    if not host or not sep:
        return False, "State is not of the form host/path"
    if rest.startswith("/"):
        return False, "State path must not start with '//'"
    if "@" in host:
        return False, "State host must not carry credentials"

    if host.lower() not in {allowed.lower() for allowed in allowed_hosts}:
        return False, f"State host '{host}' is not an allowed redirect host"

    return True, ""
