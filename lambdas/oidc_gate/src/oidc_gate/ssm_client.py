"""SSM client for reading the OAuth client secret from Parameter Store."""

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ConfigurationError, TransportFailure

# Lambda@Edge replicas run in many regions; the parameter lives in us-east-1
DEFAULT_REGION = "us-east-1"
DEFAULT_TIMEOUT_SECONDS = 3.0


class SSMClient:
    """Read-only SSM client for gate secrets (parameters are managed by Terraform)."""

    def __init__(
        self, region: str = DEFAULT_REGION, timeout: float = DEFAULT_TIMEOUT_SECONDS
    ) -> None:
        """Initialize SSM client.

        Args:
            region: AWS region holding the parameter
            timeout: Connect and read timeout in seconds; the call is not retried
        """
        self.client = boto3.client(
            "ssm",
            region_name=region,
            config=Config(
                connect_timeout=timeout,
                read_timeout=timeout,
                retries={"mode": "standard", "total_max_attempts": 1},
            ),
        )

    def get_secure_string(self, name: str) -> str:
        """Fetch and decrypt a SecureString parameter.

        Args:
            name: Full parameter name (e.g., '/oidc-gate/prod/client-secret')

        Returns:
            Decrypted parameter value

        Raises:
            ConfigurationError: If the parameter does not exist
            TransportFailure: If SSM could not be reached in time
        """
        try:
            response = self.client.get_parameter(Name=name, WithDecryption=True)
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "")
            if error_code == "ParameterNotFound":
                raise ConfigurationError(f"SSM parameter not found: {name}") from e
            raise
        except BotoCoreError as e:
            raise TransportFailure(f"SSM request for {name} failed: {e}") from e

        return response["Parameter"]["Value"]
