"""Gate configuration loaded from the JSON file bundled with the function.

Lambda@Edge does not support environment variables, so configuration ships
inside the deployment package. ``OIDC_GATE_CONFIG_PATH`` overrides the file
location for local runs and tests.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urlsplit

from .errors import ConfigurationError
from .ssm_client import DEFAULT_REGION, SSMClient

CONFIG_PATH_ENV = "OIDC_GATE_CONFIG_PATH"
DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.json"

DEFAULT_IDP_BASE_URL = "https://accounts.google.com"
DEFAULT_CALLBACK_PATH = "/_callback"
DEFAULT_HTTP_TIMEOUT_SECONDS = 3.0

_REQUIRED_FIELDS = ("client_id", "redirect_uri", "hosted_domain", "app_origin")


@dataclass(frozen=True)
class GateConfig:
    """Immutable gate configuration."""

    client_id: str
    client_secret: str = field(repr=False)
    redirect_uri: str
    hosted_domain: str
    app_origin: str
    idp_base_url: str = DEFAULT_IDP_BASE_URL
    callback_path: str = DEFAULT_CALLBACK_PATH
    allowed_redirect_hosts: tuple[str, ...] = ()
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @property
    def discovery_url(self) -> str:
        return f"{self.idp_base_url.rstrip('/')}/.well-known/openid-configuration"

    @property
    def redirect_hosts(self) -> tuple[str, ...]:
        """Hosts the post-login redirect may target; defaults to the app origin host."""
        if self.allowed_redirect_hosts:
            return self.allowed_redirect_hosts
        return (urlsplit(self.app_origin).netloc,)


def _resolve_client_secret(raw: dict, ssm_client: SSMClient | None, timeout: float) -> str:
    """Return the inline secret or fetch it from the named SSM parameter."""
    if raw.get("client_secret"):
        return _string_field(raw, "client_secret")

    parameter = raw.get("client_secret_parameter")
    if not parameter:
        raise ConfigurationError("Config requires client_secret or client_secret_parameter")
    if not isinstance(parameter, str):
        raise ConfigurationError("client_secret_parameter must be a string")

    client = ssm_client or SSMClient(
        region=_string_field(raw, "ssm_region", DEFAULT_REGION), timeout=timeout
    )
    return client.get_secure_string(parameter)


def _string_field(raw: dict, name: str, default: str | None = None) -> str:
    value = raw.get(name, default)
    if not isinstance(value, str):
        raise ConfigurationError(f"{name} must be a string")
    return value


def parse_config(raw: dict, ssm_client: SSMClient | None = None) -> GateConfig:
    """Build a GateConfig from a decoded JSON object.

    Args:
        raw: Decoded configuration mapping
        ssm_client: Optional SSM client used when the secret lives in Parameter Store

    Returns:
        Validated GateConfig

    Raises:
        ConfigurationError: If a required field is missing or malformed
    """
    missing = [name for name in _REQUIRED_FIELDS if not raw.get(name)]
    if missing:
        raise ConfigurationError(f"Config missing required fields: {', '.join(missing)}")
    required = {name: _string_field(raw, name) for name in _REQUIRED_FIELDS}

    callback_path = _string_field(raw, "callback_path", DEFAULT_CALLBACK_PATH)
    if not callback_path.startswith("/"):
        raise ConfigurationError(f"callback_path must start with '/': {callback_path}")

    redirect_hosts = raw.get("allowed_redirect_hosts", [])
    if not isinstance(redirect_hosts, list) or not all(
        isinstance(host, str) for host in redirect_hosts
    ):
        raise ConfigurationError("allowed_redirect_hosts must be a list of strings")

    timeout = raw.get("http_timeout_seconds", DEFAULT_HTTP_TIMEOUT_SECONDS)
    # bool is an int subclass but never a sensible timeout
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigurationError("http_timeout_seconds must be a positive number")

    return GateConfig(
        client_id=required["client_id"],
        client_secret=_resolve_client_secret(raw, ssm_client, float(timeout)),
        redirect_uri=required["redirect_uri"],
        hosted_domain=required["hosted_domain"].lstrip("@"),
        app_origin=required["app_origin"].rstrip("/"),
        idp_base_url=_string_field(raw, "idp_base_url", DEFAULT_IDP_BASE_URL),
        callback_path=callback_path,
        allowed_redirect_hosts=tuple(redirect_hosts),
        http_timeout_seconds=float(timeout),
    )


def load_config(path: Path | None = None, ssm_client: SSMClient | None = None) -> GateConfig:
    """Load gate configuration from the bundled JSON file."""
    config_path = path or Path(os.environ.get(CONFIG_PATH_ENV, DEFAULT_CONFIG_PATH))
    try:
        raw = json.loads(config_path.read_text())
    except FileNotFoundError as e:
        raise ConfigurationError(f"Config file not found: {config_path}") from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file is not valid JSON: {config_path}") from e

    if not isinstance(raw, dict):
        raise ConfigurationError("Config file must contain a JSON object")
    return parse_config(raw, ssm_client)
