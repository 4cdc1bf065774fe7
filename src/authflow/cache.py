"""Persisted msal token cache shared by every authflow process for a client."""

from __future__ import annotations

import logging
from pathlib import Path

from msal_extensions import (
    FilePersistence,
    PersistedTokenCache,
    build_encrypted_persistence,
)

from .errors import TokenCacheError

logger = logging.getLogger(__name__)


class TokenCacheManager:
    """Builds one :class:`PersistedTokenCache` per client ID."""

    def __init__(
        self,
        cache_location: Path,
        client_id: str,
        encrypted: bool = True,
        allow_unencrypted_fallback: bool = False,
    ):
        """
        Initialize token cache manager.

        Args:
            cache_location: Directory for cache storage
            client_id: Client ID the cache file is keyed by
            encrypted: Whether to use the platform's encrypted storage
            allow_unencrypted_fallback: Use a plain file when encrypted
                storage is unavailable (e.g. Linux without libsecret)
        """
        self.cache_location = cache_location
        self.client_id = client_id
        self.encrypted = encrypted
        self.allow_unencrypted_fallback = allow_unencrypted_fallback
        self._cache: PersistedTokenCache | None = None

    @property
    def cache_path(self) -> Path:
        return self.cache_location / f"msal_{self.client_id}.cache"

    def get_cache(self) -> PersistedTokenCache:
        """
        Get or create the token cache.

        Raises:
            TokenCacheError: If cache initialization fails
        """
        if self._cache is not None:
            return self._cache

        try:
            self.cache_location.mkdir(parents=True, exist_ok=True)
            self._cache = PersistedTokenCache(self._build_persistence())
        except TokenCacheError:
            raise
        except Exception as e:
            raise TokenCacheError(f"Failed to initialize token cache: {e}") from e

        logger.debug("Token cache initialized at %s", self.cache_path)
        return self._cache

    def _build_persistence(self):
        if not self.encrypted:
            return FilePersistence(str(self.cache_path))
        try:
            return build_encrypted_persistence(str(self.cache_path))
        except Exception as e:
            if not self.allow_unencrypted_fallback:
                raise TokenCacheError(f"Encrypted token cache unavailable: {e}") from e
            logger.warning("Encrypted token cache unavailable (%s); using a plain file", e)
            return FilePersistence(str(self.cache_path))
