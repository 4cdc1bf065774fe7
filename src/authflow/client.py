"""Identity client interface and its msal implementation."""

from __future__ import annotations

import logging
import sys
import time
from functools import cached_property
from threading import Event
from typing import Any, Callable, Protocol

import msal

from .accounts import CachedAccount
from .errors import FlowCancelledError, MsalResponseError
from .scopes import DEFAULT_AUTHORITY_HOST, authority_from_tenant
from .token import TokenResult

logger = logging.getLogger(__name__)

CodeReadyCallback = Callable[[str, str, str], None]


class IdentityClient(Protocol):
    """Operations the auth flows need from an identity platform client.

    An instance is bound to a single client (application) ID and tenant.
    Every ``acquire_*`` method either returns a token or raises.
    """

    def list_accounts(self) -> list[CachedAccount]:
        """Return the accounts in the cache for this client."""
        raise NotImplementedError

    def remove_account(self, account: CachedAccount) -> None:
        """Forget ``account`` and its tokens."""
        raise NotImplementedError

    def acquire_token_silent(
        self, account: CachedAccount, scopes: list[str]
    ) -> TokenResult | None:
        """Return a cached or refreshed token, or ``None`` if none is available."""
        raise NotImplementedError

    def acquire_token_interactive(
        self,
        scopes: list[str],
        prompt_hint: str,
        *,
        login_hint: str | None = None,
        select_account: bool = False,
    ) -> TokenResult:
        """Prompt the user (browser or broker dialog)."""
        raise NotImplementedError

    def acquire_token_device_code(
        self,
        scopes: list[str],
        on_code_ready: CodeReadyCallback,
        cancel: Event | None = None,
    ) -> TokenResult:
        """Run the device code flow, blocking until completion or cancellation."""
        raise NotImplementedError


class MsalIdentityClient:
    """:class:`IdentityClient` backed by ``msal.PublicClientApplication``."""

    def __init__(
        self,
        client_id: str,
        tenant_id: str,
        *,
        token_cache: msal.TokenCache | None = None,
        broker: bool = False,
        authority_host: str = DEFAULT_AUTHORITY_HOST,
    ) -> None:
        """Initialize the client. The msal application is created lazily.

        Args:
            client_id: Application (client) ID of the app registration.
            tenant_id: Tenant ID or domain.
            token_cache: Cache shared across processes, usually built by
                :class:`authflow.cache.TokenCacheManager`.
            broker: Route interactive requests through the platform broker.
            authority_host: Identity provider host.
        """
        self.client_id = client_id
        self.tenant_id = tenant_id
        self.broker = broker
        self.token_cache = token_cache
        self.authority_host = authority_host

    @cached_property
    def app(self) -> msal.PublicClientApplication:
        """The msal application, created on first use.

        Creating it fetches the authority's OpenID configuration, so network
        and unknown-tenant failures surface from whichever call needs it first.
        """
        return msal.PublicClientApplication(
            client_id=self.client_id,
            authority=authority_from_tenant(self.tenant_id, self.authority_host),
            token_cache=self.token_cache,
            enable_broker_on_windows=self.broker,
        )

    def list_accounts(self) -> list[CachedAccount]:
        return [CachedAccount.from_msal(a) for a in self.app.get_accounts()]

    def remove_account(self, account: CachedAccount) -> None:
        self.app.remove_account(account.handle)

    def acquire_token_silent(
        self, account: CachedAccount, scopes: list[str]
    ) -> TokenResult | None:
        result = self.app.acquire_token_silent_with_error(
            scopes=scopes, account=account.handle
        )
        if result is None:
            return None
        return self._token_from(result)

    def acquire_token_interactive(
        self,
        scopes: list[str],
        prompt_hint: str,
        *,
        login_hint: str | None = None,
        select_account: bool = False,
    ) -> TokenResult:
        kwargs: dict[str, Any] = {}
        if self.broker:
            kwargs["parent_window_handle"] = msal.PublicClientApplication.CONSOLE_WINDOW_HANDLE

        def _before_ui(ui: str = "browser", **_: Any) -> None:
            logger.info("%s: opening %s for interactive sign-in", prompt_hint, ui)

        result = self.app.acquire_token_interactive(
            scopes=scopes,
            login_hint=login_hint,
            prompt=msal.Prompt.SELECT_ACCOUNT if select_account else None,
            on_before_launching_ui=_before_ui,
            **kwargs,
        )
        return self._token_from(result)

    def acquire_token_device_code(
        self,
        scopes: list[str],
        on_code_ready: CodeReadyCallback,
        cancel: Event | None = None,
    ) -> TokenResult:
        flow = self.app.initiate_device_flow(scopes=scopes)
        if "user_code" not in flow:
            raise MsalResponseError.from_response(flow)

        on_code_ready(flow["user_code"], flow.get("verification_uri", ""), flow.get("message", ""))

        def _exit_condition(f: dict) -> bool:
            return bool(cancel and cancel.is_set()) or f.get("expires_at", 0) < time.time()

        result = self.app.acquire_token_by_device_flow(flow, exit_condition=_exit_condition)
        if cancel is not None and cancel.is_set() and "access_token" not in result:
            raise FlowCancelledError("DeviceCodeFlow", "Device code flow was cancelled.")
        return self._token_from(result)

    @staticmethod
    def _token_from(result: dict) -> TokenResult:
        if "access_token" not in result:
            raise MsalResponseError.from_response(result)
        return TokenResult(result["access_token"])


def print_device_code(user_code: str, verification_uri: str, message: str) -> None:
    """Default device code callback: show the instructions on stderr."""
    print(
        message or f"To sign in, visit {verification_uri} and enter the code {user_code}.",
        file=sys.stderr,
        flush=True,
    )
