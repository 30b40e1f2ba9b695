"""Authorization data exchanged with the registry token API.

An ``AuthEntry`` is what gets cached per registry; ``AuthorizationData`` is
one item of a ``GetAuthorizationToken`` response as seen by the resolver.
Tokens are base64 of ``username:password``.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from .errors import DecodeError

# Refresh cached tokens once 90% of their lifetime has elapsed.
DEFAULT_REFRESH_FRACTION = 0.1


def _parse_timestamp(value: str) -> datetime:
    ts = datetime.fromisoformat(value)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass(frozen=True)
class AuthEntry:
    """Cached authorization result for one registry.

    Attributes:
        authorization_token: base64 encoded ``username:password``
        requested_at: When the token was obtained
        expires_at: When the registry stops accepting the token
        proxy_endpoint: Registry endpoint the token applies to
    """
    authorization_token: str
    requested_at: datetime
    expires_at: datetime
    proxy_endpoint: str

    def refresh_margin(self, refresh_fraction: float = DEFAULT_REFRESH_FRACTION) -> timedelta:
        """Time before ``expires_at`` at which the entry stops being served."""
        window = self.expires_at - self.requested_at
        margin = window * refresh_fraction
        return max(margin, timedelta(0))

    def is_valid(self, now: datetime, refresh_fraction: float = DEFAULT_REFRESH_FRACTION) -> bool:
        """Check whether the entry can still be served at ``now``.

        Args:
            now: Current time
            refresh_fraction: Share of the token lifetime cut off before
                expiry, so callers never receive a token that is about
                to lapse. ``0`` means valid right up to ``expires_at``.

        Returns:
            True if ``now`` is strictly before the refresh point
        """
        return now < self.expires_at - self.refresh_margin(refresh_fraction)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "authorizationToken": self.authorization_token,
            "requestedAt": self.requested_at.isoformat(),
            "expiresAt": self.expires_at.isoformat(),
            "proxyEndpoint": self.proxy_endpoint,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthEntry":
        """Create from dictionary (JSON deserialization)."""
        return cls(
            authorization_token=data["authorizationToken"],
            requested_at=_parse_timestamp(data["requestedAt"]),
            expires_at=_parse_timestamp(data["expiresAt"]),
            proxy_endpoint=data["proxyEndpoint"],
        )


@dataclass(frozen=True)
class AuthorizationData:
    """One authorization record from a token API response."""
    proxy_endpoint: Optional[str] = None
    authorization_token: Optional[str] = None
    expires_at: Optional[datetime] = None

    def matches(self, image: str, scheme: str = "https://") -> bool:
        """True if this record carries a token for ``image``'s registry."""
        if not self.proxy_endpoint or not self.authorization_token:
            return False
        return (scheme + image).startswith(self.proxy_endpoint)


@dataclass(frozen=True)
class AuthorizationTokenResponse:
    """Result of a ``GetAuthorizationToken`` call."""
    authorization_data: Tuple[AuthorizationData, ...] = field(default_factory=tuple)


def extract_token(token: str) -> Tuple[str, str]:
    """Decode an authorization token into a username/password pair.

    Args:
        token: base64 encoded ``username:password``

    Returns:
        Tuple of (username, password). Only the first ``:`` separates the
        two, so passwords may contain colons.

    Raises:
        DecodeError: If the token is not valid base64, not UTF-8, or has
            no ``:`` separator
    """
    try:
        decoded = base64.b64decode(token, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise DecodeError(f"invalid authorization token: {e}") from e

    username, sep, password = decoded.partition(":")
    if not sep:
        raise DecodeError("invalid authorization token: missing ':' separator")
    return username, password


__all__ = [
    "DEFAULT_REFRESH_FRACTION",
    "AuthEntry",
    "AuthorizationData",
    "AuthorizationTokenResponse",
    "extract_token",
]
