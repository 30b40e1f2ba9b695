"""Amazon ECR credential helper - cached registry credentials for docker."""

from .version import HELPER_VERSION
from .errors import (
    CredentialHelperError,
    FetchError,
    NoAuthDataError,
    DecodeError,
    RegistryFormatError,
    CacheError,
)
from .auth import (
    DEFAULT_REFRESH_FRACTION,
    AuthEntry,
    AuthorizationData,
    AuthorizationTokenResponse,
    extract_token,
)
from .ports import (
    RegistryTokenAPI,
    CredentialsCache,
    Clock,
)
from .cache import (
    NullCredentialsCache,
    MemoryCredentialsCache,
    FileCredentialsCache,
)
from .resolver import CredentialResolver, SystemClock, PROXY_ENDPOINT_SCHEME
from .registry import EcrRegistry, parse_registry
from .ecr import EcrTokenAPI, ecr_client_factory
from .config import HelperConfig, LogFormats

__version__ = HELPER_VERSION

__all__ = [
    # Version
    "HELPER_VERSION",
    # Errors
    "CredentialHelperError",
    "FetchError",
    "NoAuthDataError",
    "DecodeError",
    "RegistryFormatError",
    "CacheError",
    # Authorization data
    "DEFAULT_REFRESH_FRACTION",
    "AuthEntry",
    "AuthorizationData",
    "AuthorizationTokenResponse",
    "extract_token",
    # Ports
    "RegistryTokenAPI",
    "CredentialsCache",
    "Clock",
    # Cache backends
    "NullCredentialsCache",
    "MemoryCredentialsCache",
    "FileCredentialsCache",
    # Resolver
    "CredentialResolver",
    "SystemClock",
    "PROXY_ENDPOINT_SCHEME",
    # Registry parsing
    "EcrRegistry",
    "parse_registry",
    # ECR adapter
    "EcrTokenAPI",
    "ecr_client_factory",
    # Configuration
    "HelperConfig",
    "LogFormats",
]
