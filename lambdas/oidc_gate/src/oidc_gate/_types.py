"""Type definitions for the CloudFront viewer-request gate."""

from typing import NotRequired, TypedDict


class HeaderEntry(TypedDict):
    """Single CloudFront header value, keyed by its original-case name."""

    key: NotRequired[str]
    value: str


Headers = dict[str, list[HeaderEntry]]


class CloudFrontRequest(TypedDict, total=False):
    """CloudFront request descriptor (viewer-request fields)."""

    clientIp: str
    method: str
    uri: str
    querystring: str
    headers: Headers


class CloudFrontConfig(TypedDict, total=False):
    distributionDomainName: str
    distributionId: str
    eventType: str
    requestId: str


class CloudFrontPayload(TypedDict, total=False):
    config: CloudFrontConfig
    request: CloudFrontRequest


class CloudFrontRecord(TypedDict):
    cf: CloudFrontPayload


class CloudFrontEvent(TypedDict):
    """Lambda@Edge viewer-request event."""

    Records: list[CloudFrontRecord]


class CloudFrontResponse(TypedDict):
    """Generated response returned to CloudFront instead of forwarding."""

    status: str
    statusDescription: str
    body: NotRequired[str]
    headers: NotRequired[Headers]


class DiscoveryPayload(TypedDict, total=False):
    """Raw OIDC discovery document as published by the IdP."""

    issuer: str
    authorization_endpoint: str
    token_endpoint: str
    jwks_uri: str


class TokenEndpointResponse(TypedDict, total=False):
    """Token endpoint response body (success or OAuth error)."""

    id_token: str
    access_token: str
    expires_in: int
    token_type: str
    error: str
    error_description: str


class LambdaContext:
    """AWS Lambda context object stub for typing."""

    function_name: str
    memory_limit_in_mb: int
    invoked_function_arn: str
    aws_request_id: str

    def get_remaining_time_in_millis(self) -> int: ...
