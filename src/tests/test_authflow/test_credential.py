from __future__ import annotations

import pytest
from azure.core.credentials import AccessToken
from azure.core.exceptions import ClientAuthenticationError

from authflow.config import AuthSettings
from authflow.credential import AuthFlowCredential
from authflow.errors import IdentityProviderError, LockTimeout
from authflow.token import AuthFlowResult, TokenResult

from fakes import make_jwt


class _StubFetcher:
    """Records the settings it was built with and returns queued results."""

    built: list[AuthSettings] = []
    results: list[AuthFlowResult | Exception] = []

    def __init__(self, settings: AuthSettings) -> None:
        self.settings = settings
        type(self).built.append(settings)

    def get_token(self) -> AuthFlowResult:
        result = type(self).results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture()
def stub_fetcher() -> type[_StubFetcher]:
    _StubFetcher.built = []
    _StubFetcher.results = []
    return _StubFetcher


@pytest.fixture()
def credential(stub_fetcher: type[_StubFetcher]) -> AuthFlowCredential:
    settings = AuthSettings(resource="https://resource", client="c", tenant="t")
    return AuthFlowCredential(settings, fetcher_factory=stub_fetcher)


def _ok(expires_in: int = 3600) -> AuthFlowResult:
    return AuthFlowResult(TokenResult(make_jwt(expires_in=expires_in)))


def test_get_token__returns_access_token(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    result = _ok()
    stub_fetcher.results.append(result)

    token = credential.get_token()

    assert isinstance(token, AccessToken)
    assert token.token == result.token_result.token
    assert token.expires_on == result.token_result.expiration_timestamp
    assert stub_fetcher.built[0].effective_scopes == ["https://resource/.default"]


def test_get_token__explicit_scopes_passed_through(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.append(_ok())
    credential.get_token("api://x/read", "api://x/write")
    assert stub_fetcher.built[0].effective_scopes == ["api://x/read", "api://x/write"]


def test_get_token__reuses_token_far_from_expiry(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.append(_ok())
    first = credential.get_token()
    second = credential.get_token()

    assert first == second
    assert len(stub_fetcher.built) == 1


def test_get_token__refetches_token_near_expiry(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.extend([_ok(expires_in=60), _ok()])
    credential.get_token()
    credential.get_token()
    assert len(stub_fetcher.built) == 2


def test_get_token__cache_is_per_scope_set(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.extend([_ok(), _ok()])
    credential.get_token("a/.default")
    credential.get_token("b/.default")
    assert len(stub_fetcher.built) == 2


def test_get_token__failure_lists_every_error(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.append(
        AuthFlowResult(
            errors=[
                IdentityProviderError("BrokerFlow", "broker unavailable"),
                IdentityProviderError("WebFlow", "user closed the browser"),
            ]
        )
    )

    with pytest.raises(ClientAuthenticationError) as excinfo:
        credential.get_token()

    message = str(excinfo.value)
    assert message.startswith("Authentication failed:")
    assert "- broker unavailable" in message
    assert "- user closed the browser" in message


def test_close__drops_cached_tokens(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.extend([_ok(), _ok()])
    with credential:
        credential.get_token()
    credential.get_token()
    assert len(stub_fetcher.built) == 2


def test_get_token__lock_timeout_is_an_authentication_error(
    credential: AuthFlowCredential, stub_fetcher: type[_StubFetcher]
) -> None:
    stub_fetcher.results.append(LockTimeout("did not gain access in the expected time"))

    with pytest.raises(ClientAuthenticationError, match="did not gain access") as excinfo:
        credential.get_token()

    assert isinstance(excinfo.value.__cause__, LockTimeout)
