from __future__ import annotations

import logging
from threading import Event
from typing import Protocol

from authflow.accounts import AccountResolution, AccountResolver
from authflow.client import IdentityClient
from authflow.errors import IdentityProviderError
from authflow.token import AuthFlowResult, AuthType, TokenResult

logger = logging.getLogger(__name__)


class AuthFlow(Protocol):
    """Protocol for a single way of obtaining a token.

    Implementations never raise for identity failures: every error ends up in
    the returned :class:`AuthFlowResult`.
    """

    def get_token(self, cancel: Event | None = None) -> AuthFlowResult:
        """Try to obtain a token."""
        raise NotImplementedError


class CachedAccountFlow:
    """Silent acquisition for a unique cached account, then an interactive fallback.

    Browser and broker flows differ only in the client they are given; other
    mechanisms override :meth:`_interactive`.
    """

    interactive_auth_type: AuthType = AuthType.INTERACTIVE

    def __init__(
        self,
        client: IdentityClient,
        scopes: list[str],
        preferred_domain: str | None = None,
        prompt_hint: str = "",
    ) -> None:
        self.client = client
        self.scopes = list(scopes)
        self.preferred_domain = preferred_domain
        self.prompt_hint = prompt_hint
        self.resolver = AccountResolver(client, preferred_domain)

    @property
    def name(self) -> str:
        return type(self).__name__

    def get_token(self, cancel: Event | None = None) -> AuthFlowResult:
        errors: list[Exception] = []
        token: TokenResult | None = None
        try:
            resolution = self.resolver.resolve()
            if resolution.error is not None:
                errors.append(IdentityProviderError.wrap(self.name, resolution.error))

            if resolution.is_unique:
                token = self._silent(resolution, errors)

            if token is None:
                logger.debug("%s: no silent token, starting interactive auth", self.name)
                token = self._interactive(resolution, cancel).with_auth_type(
                    self.interactive_auth_type
                )
        except Exception as exc:
            logger.debug("%s failed: %s", self.name, exc)
            errors.append(IdentityProviderError.wrap(self.name, exc))

        return AuthFlowResult(token, errors, flow_name=self.name)

    def _silent(
        self, resolution: AccountResolution, errors: list[Exception]
    ) -> TokenResult | None:
        account = resolution.account
        try:
            token = self.client.acquire_token_silent(account, self.scopes)
        except Exception as exc:
            logger.debug("%s: silent auth for %s failed: %s", self.name, account.username, exc)
            errors.append(IdentityProviderError.wrap(self.name, exc))
            return None
        if token is None:
            return None
        logger.debug("%s: silent auth succeeded for %s", self.name, account.username)
        return token.with_auth_type(AuthType.SILENT)

    def _interactive(
        self, resolution: AccountResolution, cancel: Event | None
    ) -> TokenResult:
        """Prompt the user, pre-selecting the account or asking them to pick one."""
        return self.client.acquire_token_interactive(
            self.scopes,
            self.prompt_hint,
            login_hint=resolution.account.username if resolution.is_unique else None,
            select_account=resolution.is_ambiguous,
        )
