"""Credential cache backends.

All backends satisfy the ``CredentialsCache`` port. Entries are immutable,
so handing out the stored object is safe; the backends only need to make
sure a key never exposes a half-written entry.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

from .auth import AuthEntry
from .errors import CacheError

logger = structlog.stdlib.get_logger(__name__)

CACHE_FORMAT_VERSION = "1.0"


class NullCredentialsCache:
    """Cache that never stores anything."""

    def get(self, registry: str) -> Optional[AuthEntry]:
        return None

    def set(self, registry: str, entry: AuthEntry) -> None:
        pass

    def list(self) -> Dict[str, AuthEntry]:
        return {}

    def clear(self) -> None:
        pass


class MemoryCredentialsCache:
    """Process-local cache guarded by a lock."""

    def __init__(self):
        self._entries: Dict[str, AuthEntry] = {}
        self._lock = threading.Lock()

    def get(self, registry: str) -> Optional[AuthEntry]:
        with self._lock:
            return self._entries.get(registry)

    def set(self, registry: str, entry: AuthEntry) -> None:
        with self._lock:
            self._entries[registry] = entry

    def list(self) -> Dict[str, AuthEntry]:
        with self._lock:
            return dict(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class FileCredentialsCache:
    """JSON file cache shared between helper invocations.

    The file holds a single document::

        {"version": "1.0",
         "registries": {"<prefix><registry>": {"authorizationToken": ...,
                                                "requestedAt": ...,
                                                "expiresAt": ...,
                                                "proxyEndpoint": ...}}}

    Keys are namespaced by ``prefix`` so one file can serve several regions
    (the same account ID exists in every region). Writes go to a temporary
    file in the same directory which then replaces the cache file, so a
    concurrent reader sees either the old or the new document.

    Args:
        path: Location of the cache file
        prefix: Namespace prepended to every registry key
    """

    def __init__(self, path: Path, prefix: str = ""):
        self.path = Path(path)
        self.prefix = prefix
        self._lock = threading.Lock()

    def _key(self, registry: str) -> str:
        return f"{self.prefix}{registry}"

    def _read(self) -> Dict[str, Any]:
        """Load the raw registry mapping.

        Raises:
            CacheError: If the file exists but is not a valid cache document
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CacheError(f"Could not read credential cache {self.path}: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("registries"), dict):
            raise CacheError(f"Malformed credential cache {self.path}")
        if data.get("version") != CACHE_FORMAT_VERSION:
            logger.info("ignoring cache with unknown version",
                        path=str(self.path), version=data.get("version"))
            return {}
        return data["registries"]

    def _read_or_empty(self) -> Dict[str, Any]:
        try:
            return self._read()
        except CacheError as e:
            logger.warning("credential cache unreadable, treating as empty", error=str(e))
            return {}

    def _write(self, registries: Dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        document = {"version": CACHE_FORMAT_VERSION, "registries": registries}

        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(document, f, indent=2, sort_keys=True)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def get(self, registry: str) -> Optional[AuthEntry]:
        raw = self._read_or_empty().get(self._key(registry))
        if raw is None:
            return None
        try:
            return AuthEntry.from_dict(raw)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("dropping malformed cache entry", registry=registry, error=str(e))
            return None

    def set(self, registry: str, entry: AuthEntry) -> None:
        """Store ``entry``; a failed save is logged and the entry dropped."""
        with self._lock:
            registries = self._read_or_empty()
            registries[self._key(registry)] = entry.to_dict()
            try:
                self._write(registries)
            except OSError as e:
                logger.warning("could not save credential cache",
                               path=str(self.path), registry=registry, error=str(e))

    def list(self) -> Dict[str, AuthEntry]:
        """Return the entries stored under this cache's prefix."""
        entries = {}
        for key, raw in self._read_or_empty().items():
            if not key.startswith(self.prefix):
                continue
            try:
                entries[key[len(self.prefix):]] = AuthEntry.from_dict(raw)
            except (KeyError, TypeError, ValueError):
                continue
        return entries

    def clear(self) -> None:
        """Remove every entry stored under this cache's prefix."""
        with self._lock:
            registries = {
                key: raw for key, raw in self._read_or_empty().items()
                if not key.startswith(self.prefix)
            }
            self._write(registries)


__all__ = [
    "CACHE_FORMAT_VERSION",
    "NullCredentialsCache",
    "MemoryCredentialsCache",
    "FileCredentialsCache",
]
