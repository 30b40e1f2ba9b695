"""Credential helper exceptions."""

from typing import Optional


class CredentialHelperError(Exception):
    """Base class for all credential helper failures."""
    pass


class FetchError(CredentialHelperError):
    """Raised when the token API call failed and no cached entry exists.

    The underlying exception is attached as ``__cause__``.
    """

    def __init__(self, registry: str, cause: Optional[BaseException] = None,
                 message: Optional[str] = None):
        self.registry = registry
        if message is None:
            message = f"token fetch failed for registry {registry}"
            if cause is not None:
                message = f"{message}: {cause}"
        super().__init__(message)


class NoAuthDataError(CredentialHelperError):
    """Raised when the API returned no usable authorization data."""

    def __init__(self, registry: str, message: Optional[str] = None):
        self.registry = registry
        super().__init__(message or f"no authorization data returned for registry {registry}")


class DecodeError(CredentialHelperError, ValueError):
    """Raised when an authorization token cannot be decoded."""
    pass


class RegistryFormatError(CredentialHelperError, ValueError):
    """Raised when a server URL is not an ECR registry."""
    pass


class CacheError(CredentialHelperError):
    """Raised when the on-disk cache cannot be read."""
    pass


__all__ = [
    "CredentialHelperError",
    "FetchError",
    "NoAuthDataError",
    "DecodeError",
    "RegistryFormatError",
    "CacheError",
]
