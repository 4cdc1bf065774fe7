from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Callable

from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from .config import AuthSettings
from .errors import AuthFlowError
from .fetcher import TokenFetcher
from .token import TokenResult

logger = logging.getLogger(__name__)

# Cached tokens closer than this to expiry are fetched again.
REFRESH_MARGIN = timedelta(minutes=5)


class AuthFlowCredential:
    """``azure.core`` TokenCredential backed by the authflow strategy chain.

    Lets Azure SDK clients use the same broker/web/device code fallback and
    prompt lock as the command line.
    """

    def __init__(
        self,
        settings: AuthSettings,
        *,
        fetcher_factory: Callable[[AuthSettings], TokenFetcher] = TokenFetcher,
    ) -> None:
        self._settings = settings
        self._fetcher_factory = fetcher_factory
        self._tokens: dict[tuple[str, ...], TokenResult] = {}

    def get_token(self, *scopes: str, **kwargs: Any) -> AccessToken:
        """Return an access token for ``scopes`` (settings' scopes if none given).

        Raises:
            ClientAuthenticationError: If every auth flow failed, or the prompt
                lock or token cache could not be used.
        """
        key = tuple(scopes) or tuple(self._settings.effective_scopes)
        cached = self._tokens.get(key)
        if cached is not None and cached.valid_for() > REFRESH_MARGIN:
            return AccessToken(cached.token, cached.expiration_timestamp)

        settings = self._settings.model_copy(update={"scopes": list(key)})
        try:
            result = self._fetcher_factory(settings).get_token()
        except AuthFlowError as exc:
            raise ClientAuthenticationError(message=f"Authentication failed:\n- {exc}") from exc
        if not result.success:
            details = "\n".join(f"- {e}" for e in result.errors) or "- no auth flows ran"
            raise ClientAuthenticationError(
                message=f"Authentication failed:\n{details}"
            )

        logger.debug("Token obtained via %s", result.token_result.auth_type.value)
        self._tokens[key] = result.token_result
        return AccessToken(result.token_result.token, result.token_result.expiration_timestamp)

    def close(self) -> None:
        self._tokens.clear()

    def __enter__(self) -> "AuthFlowCredential":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
