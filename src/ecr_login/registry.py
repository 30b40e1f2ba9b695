"""ECR registry hostname parsing.

Docker hands credential helpers a server URL such as
``https://123456789012.dkr.ecr.us-east-1.amazonaws.com``. The account ID
is the registry identifier for the token API and the region selects the
API endpoint.

Format: '<account>.dkr.ecr[-fips].<region>.amazonaws.com[.cn]'
"""

import re
from dataclasses import dataclass

from .errors import RegistryFormatError

_ECR_HOST_RE = re.compile(
    r"^(?P<registry_id>[0-9]{12})\.dkr[.-]ecr(?P<fips>-fips)?\."
    r"(?P<region>[a-zA-Z0-9][a-zA-Z0-9-_]*)\.amazonaws\.com(?:\.cn)?$"
)


@dataclass(frozen=True)
class EcrRegistry:
    """Parsed ECR registry reference.

    Attributes:
        registry_id: 12 digit AWS account ID
        region: AWS region, e.g. "us-east-1"
        fips: Whether the FIPS endpoint was requested
        host: Registry hostname (no scheme, no path)
        path: Anything after the hostname, without the leading '/'
    """
    registry_id: str
    region: str
    fips: bool
    host: str
    path: str = ""

    @property
    def image(self) -> str:
        """Image reference as matched against proxy endpoints."""
        return f"{self.host}/{self.path}" if self.path else self.host

    @property
    def server_url(self) -> str:
        return f"https://{self.host}"


def parse_registry(server_url: str) -> EcrRegistry:
    """Parse a docker server URL into an ECR registry reference.

    Args:
        server_url: Hostname, optionally with a scheme and a path

    Returns:
        EcrRegistry for the URL

    Raises:
        RegistryFormatError: If the hostname is not an ECR registry
    """
    s = server_url.strip()
    if "://" in s:
        scheme, s = s.split("://", 1)
        if scheme not in ("https", "http"):
            raise RegistryFormatError(f"Unsupported scheme in server URL: {server_url}")

    host, _, path = s.partition("/")
    match = _ECR_HOST_RE.match(host)
    if not match:
        raise RegistryFormatError(f"{server_url!r} is not an ECR registry")

    return EcrRegistry(
        registry_id=match.group("registry_id"),
        region=match.group("region"),
        fips=match.group("fips") is not None,
        host=host,
        path=path.rstrip("/"),
    )


__all__ = [
    "EcrRegistry",
    "parse_registry",
]
