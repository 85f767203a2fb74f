"""CloudFront OIDC authentication gate.

Lambda@Edge entry point: ``oidc_gate.handler.handler``.
"""

from ._types import CloudFrontEvent, CloudFrontRequest, CloudFrontResponse, LambdaContext

__all__ = [
    "CloudFrontEvent",
    "CloudFrontRequest",
    "CloudFrontResponse",
    "LambdaContext",
]
