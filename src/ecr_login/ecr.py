"""boto3 adapter for the ECR ``GetAuthorizationToken`` API."""

from typing import Any, Optional, Sequence

import boto3
import structlog
from botocore.exceptions import BotoCoreError, ClientError

from .auth import AuthorizationData, AuthorizationTokenResponse

logger = structlog.stdlib.get_logger(__name__)


def ecr_client_factory(region: str, fips: bool = False,
                       session: Optional[boto3.Session] = None) -> Any:
    """Build a boto3 ECR client for ``region``.

    Args:
        region: AWS region of the registry
        fips: Use the FIPS endpoint for the region
        session: Session to create the client from (default session if None)

    Returns:
        boto3 ECR client
    """
    session = session or boto3.Session()
    kwargs = {"region_name": region}
    if fips:
        kwargs["endpoint_url"] = f"https://ecr-fips.{region}.amazonaws.com"
    return session.client("ecr", **kwargs)


class EcrTokenAPI:
    """Registry token API backed by a boto3 ECR client.

    Errors from botocore are logged and re-raised unchanged; deciding
    whether a failure is fatal is the resolver's job.
    """

    def __init__(self, ecr_client: Any):
        self.ecr_client = ecr_client

    def get_authorization_token(
        self, registry_ids: Sequence[str]
    ) -> Optional[AuthorizationTokenResponse]:
        try:
            response = self.ecr_client.get_authorization_token(registryIds=list(registry_ids))
        except ClientError as e:
            logger.error(
                "GetAuthorizationToken failed",
                registry_ids=list(registry_ids),
                error_code=e.response["Error"]["Code"],
                error_message=str(e),
            )
            raise
        except BotoCoreError as e:
            logger.error(
                "GetAuthorizationToken failed",
                registry_ids=list(registry_ids),
                error=str(e),
            )
            raise

        if not response:
            return None

        return AuthorizationTokenResponse(
            authorization_data=tuple(
                AuthorizationData(
                    proxy_endpoint=item.get("proxyEndpoint"),
                    authorization_token=item.get("authorizationToken"),
                    expires_at=item.get("expiresAt"),
                )
                for item in response.get("authorizationData", [])
            )
        )


__all__ = [
    "ecr_client_factory",
    "EcrTokenAPI",
]
