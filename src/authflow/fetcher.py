"""Token acquisition entry point: prompt lock, strategy chain and cache clearing."""

from __future__ import annotations

import logging
from threading import Event

from .cache import TokenCacheManager
from .client import CodeReadyCallback, IdentityClient
from .config import AuthSettings
from .errors import IdentityProviderError
from .flows import AuthFlow, AuthFlowExecutor, create_auth_flows
from .flows.factory import ClientFactory, msal_client_factory
from .lock import ProcessLock
from .scopes import prefixed_prompt_hint
from .token import AuthFlowResult

logger = logging.getLogger(__name__)


class TokenFetcher:
    """Acquires a token for the configured resource, client and tenant.

    Only one process per (resource, client, tenant) runs its auth flows at a
    time; each waiter still runs its own full chain once it holds the lock.
    """

    def __init__(
        self,
        settings: AuthSettings,
        *,
        auth_flow: AuthFlow | None = None,
        client_factory: ClientFactory | None = None,
        on_code_ready: CodeReadyCallback | None = None,
    ) -> None:
        """Initialize the fetcher.

        Args:
            settings: Resolved settings.
            auth_flow: Flow to run instead of the one built from ``settings.modes``.
            client_factory: Builds identity clients; defaults to msal clients
                sharing a persisted cache under ``settings.cache_dir``.
            on_code_ready: Device code instructions callback.
        """
        self.settings = settings
        self._auth_flow = auth_flow
        self._client_factory = client_factory
        self._on_code_ready = on_code_ready

    @property
    def client_factory(self) -> ClientFactory:
        if self._client_factory is None:
            cache = TokenCacheManager(
                self.settings.cache_dir,
                self.settings.client,
                encrypted=self.settings.cache_encrypted,
                allow_unencrypted_fallback=True,
            ).get_cache()
            self._client_factory = msal_client_factory(cache)
        return self._client_factory

    @property
    def auth_flow(self) -> AuthFlow:
        if self._auth_flow is None:
            s = self.settings
            flows = create_auth_flows(
                s.auth_mode,
                s.client,
                s.tenant,
                s.effective_scopes,
                s.domain,
                prefixed_prompt_hint(s.prompt_hint),
                client_factory=self.client_factory,
                on_code_ready=self._on_code_ready,
            )
            self._auth_flow = AuthFlowExecutor(flows)
        return self._auth_flow

    def get_token(self, cancel: Event | None = None) -> AuthFlowResult:
        """Run the auth flows while holding the prompt lock.

        Raises:
            LockTimeout: If the lock was not acquired within ``settings.lock_timeout``.
                No flow is started in that case.
        """
        auth_flow = self.auth_flow
        s = self.settings
        with ProcessLock(s.resource, s.client, s.tenant, timeout=s.lock_timeout_delta):
            return auth_flow.get_token(cancel)

    def clear_cache(self) -> int:
        """Remove every cached account for the client. Returns how many were removed.

        Raises:
            IdentityProviderError: If the identity client could not list or
                remove the accounts.
        """
        client: IdentityClient = self.client_factory(self.settings.client, self.settings.tenant, False)
        removed = 0
        try:
            for account in client.list_accounts():
                logger.info("Removing %s from the cache...", account.username)
                client.remove_account(account)
                removed += 1
        except Exception as exc:
            raise IdentityProviderError.wrap("clear_cache", exc) from exc
        logger.info("Cleared %d account(s).", removed)
        return removed
