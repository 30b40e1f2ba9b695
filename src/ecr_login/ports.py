"""Port definitions for the credential resolver.

These protocols define the boundaries between the resolver and the things
it drives: the registry token API, the credential cache and the clock.
Production adapters and test doubles both satisfy them, so the resolver
never reaches for globals or wall-clock time directly.
"""

from datetime import datetime
from typing import Optional, Protocol, Sequence, runtime_checkable

from .auth import AuthEntry, AuthorizationTokenResponse


@runtime_checkable
class RegistryTokenAPI(Protocol):
    """Port for exchanging registry identifiers for authorization tokens.

    Implementations might use:
    - boto3's ECR client
    - A canned response (for testing)
    """

    def get_authorization_token(
        self, registry_ids: Sequence[str]
    ) -> Optional[AuthorizationTokenResponse]:
        """Request authorization data for the given registries.

        Args:
            registry_ids: Registry identifiers (AWS account IDs for ECR)

        Returns:
            The response, or None if the service returned nothing

        Raises:
            Any exception on transport, auth or service failure
        """
        ...


@runtime_checkable
class CredentialsCache(Protocol):
    """Port for storing one ``AuthEntry`` per registry.

    Readers must see either the previous or the new entry for a key, never
    a mix of both. ``get`` must not perform network I/O.
    """

    def get(self, registry: str) -> Optional[AuthEntry]:
        """Return the cached entry for ``registry``, or None."""
        ...

    def set(self, registry: str, entry: AuthEntry) -> None:
        """Store ``entry``, replacing any previous entry for ``registry``."""
        ...


@runtime_checkable
class Clock(Protocol):
    """Source of the current time."""

    def now(self) -> datetime:
        """Return the current timezone-aware time."""
        ...


__all__ = [
    "RegistryTokenAPI",
    "CredentialsCache",
    "Clock",
]
