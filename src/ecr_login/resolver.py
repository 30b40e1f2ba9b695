"""Credential resolution with caching and stale-token fallback.

The resolver decides, per call, whether to serve a cached token, fetch a
new one from the registry token API, or fall back to a stale cached token
when the fetch fails. A transient API outage should not break clients that
already hold a token, so any cached entry (even an expired one) is preferred
over an error.
"""

from datetime import datetime, timezone
from typing import Optional, Tuple

import structlog

from .auth import (
    DEFAULT_REFRESH_FRACTION,
    AuthEntry,
    AuthorizationTokenResponse,
    extract_token,
)
from .errors import FetchError, NoAuthDataError
from .ports import Clock, CredentialsCache, RegistryTokenAPI

logger = structlog.stdlib.get_logger(__name__)

PROXY_ENDPOINT_SCHEME = "https://"


class SystemClock:
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class CredentialResolver:
    """Resolve registry credentials through a cache.

    Args:
        api: Registry token API used on cache miss or expiry
        cache: Store holding the last token obtained per registry
        clock: Time source for validity checks
        refresh_fraction: Share of a token's lifetime during which it is no
            longer served from cache (see ``AuthEntry.is_valid``)
    """

    def __init__(
        self,
        api: RegistryTokenAPI,
        cache: CredentialsCache,
        clock: Optional[Clock] = None,
        refresh_fraction: float = DEFAULT_REFRESH_FRACTION,
    ):
        self.api = api
        self.cache = cache
        self.clock = clock or SystemClock()
        self.refresh_fraction = refresh_fraction

    def get_credentials(self, registry: str, image: str) -> Tuple[str, str]:
        """Return the (username, password) pair for ``registry``.

        Args:
            registry: Registry identifier passed to the token API and used
                as the cache key
            image: Image reference without scheme, e.g.
                ``123456789012.dkr.ecr.us-east-1.amazonaws.com/repo:tag``.
                Only authorization data whose endpoint prefixes
                ``https://<image>`` is accepted.

        Returns:
            Tuple of (username, password)

        Raises:
            ValueError: If ``registry`` is empty
            FetchError: If the API call failed and nothing is cached
            NoAuthDataError: If the API returned no matching token and
                nothing is cached
            DecodeError: If the token served cannot be decoded
        """
        if not registry:
            raise ValueError("registry must not be empty")

        log = logger.bind(registry=registry)
        cached = self.cache.get(registry)

        if cached is not None:
            if cached.is_valid(self.clock.now(), self.refresh_fraction):
                log.debug("cache hit")
                return extract_token(cached.authorization_token)
            log.debug(
                "cached token expired",
                requested_at=cached.requested_at.isoformat(),
                expires_at=cached.expires_at.isoformat(),
            )

        log.debug("calling GetAuthorizationToken")
        try:
            response = self.api.get_authorization_token([registry])
        except Exception as e:
            if cached is not None:
                return self._fallback(log, cached, e)
            raise FetchError(registry, e) from e

        if response is None or not response.authorization_data:
            if cached is not None:
                return self._fallback(log, cached, NoAuthDataError(registry))
            raise NoAuthDataError(registry)

        entry = self._select_entry(response, image)
        if entry is None:
            raise NoAuthDataError(
                registry, f"no authorization token found for registry {registry}"
            )

        self.cache.set(registry, entry)
        log.debug("stored token", proxy_endpoint=entry.proxy_endpoint,
                  expires_at=entry.expires_at.isoformat())
        return extract_token(entry.authorization_token)

    def _select_entry(
        self, response: AuthorizationTokenResponse, image: str
    ) -> Optional[AuthEntry]:
        for auth_data in response.authorization_data:
            if not auth_data.matches(image, PROXY_ENDPOINT_SCHEME):
                continue
            now = self.clock.now()
            return AuthEntry(
                authorization_token=auth_data.authorization_token,
                requested_at=now,
                expires_at=auth_data.expires_at or now,
                proxy_endpoint=auth_data.proxy_endpoint,
            )
        return None

    @staticmethod
    def _fallback(log, cached: AuthEntry, error: Exception) -> Tuple[str, str]:
        log.warning(
            "falling back to cached token",
            error=str(error),
            expires_at=cached.expires_at.isoformat(),
        )
        return extract_token(cached.authorization_token)


__all__ = [
    "PROXY_ENDPOINT_SCHEME",
    "SystemClock",
    "CredentialResolver",
]
