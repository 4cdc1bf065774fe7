from __future__ import annotations

from threading import Event
from typing import Any

import msal
import pytest

from authflow.accounts import CachedAccount
from authflow.client import MsalIdentityClient, print_device_code
from authflow.errors import FlowCancelledError, MsalResponseError

from fakes import make_jwt


class _FakeApp:
    """Stand-in for ``msal.PublicClientApplication`` recording its calls."""

    CONSOLE_WINDOW_HANDLE = object()

    def __init__(self, **kwargs: Any) -> None:
        self.init_kwargs = kwargs
        self.accounts = [{"username": "alice@contoso.com", "home_account_id": "uid.tid"}]
        self.silent: dict | None = None
        self.interactive: dict = {}
        self.flow: dict = {
            "user_code": "ABCD-1234",
            "verification_uri": "https://microsoft.com/devicelogin",
            "message": "Enter ABCD-1234",
            "expires_at": 2**40,
        }
        self.device_result: dict = {}
        self.calls: dict[str, dict[str, Any]] = {}

    def get_accounts(self) -> list[dict]:
        return list(self.accounts)

    def remove_account(self, account: dict) -> None:
        self.accounts.remove(account)

    def acquire_token_silent_with_error(self, scopes, account):
        self.calls["silent"] = {"scopes": scopes, "account": account}
        return self.silent

    def acquire_token_interactive(self, scopes, **kwargs):
        kwargs["on_before_launching_ui"](ui="browser")
        self.calls["interactive"] = {"scopes": scopes, **kwargs}
        return self.interactive

    def initiate_device_flow(self, scopes):
        self.calls["initiate"] = {"scopes": scopes}
        return self.flow

    def acquire_token_by_device_flow(self, flow, exit_condition):
        self.calls["device"] = {"exit": exit_condition(flow)}
        return self.device_result


@pytest.fixture()
def fake_app(monkeypatch: pytest.MonkeyPatch) -> list[_FakeApp]:
    created: list[_FakeApp] = []

    def build(**kwargs: Any) -> _FakeApp:
        app = _FakeApp(**kwargs)
        created.append(app)
        return app

    build.CONSOLE_WINDOW_HANDLE = _FakeApp.CONSOLE_WINDOW_HANDLE
    monkeypatch.setattr(msal, "PublicClientApplication", build)
    return created


def test_client__authority_and_broker_flag(fake_app: list[_FakeApp]) -> None:
    """The msal application is created on first use, once."""
    client = MsalIdentityClient("client-id", "contoso.onmicrosoft.com", broker=True)
    assert fake_app == []

    assert client.app is client.app
    assert fake_app == [client.app]
    kwargs = client.app.init_kwargs
    assert kwargs["client_id"] == "client-id"
    assert kwargs["authority"] == "https://login.microsoftonline.com/contoso.onmicrosoft.com"
    assert kwargs["enable_broker_on_windows"] is True


def test_list_and_remove_accounts(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    (account,) = client.list_accounts()
    assert account == CachedAccount("alice@contoso.com", "uid.tid")

    client.remove_account(account)
    assert client.list_accounts() == []


def test_silent__no_token_is_none(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    (account,) = client.list_accounts()
    assert client.acquire_token_silent(account, ["s"]) is None
    assert client.app.calls["silent"]["account"] is account.handle


def test_silent__error_response_raises(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    client.app.silent = {"error": "invalid_grant", "error_description": "AADSTS50076: MFA required"}
    (account,) = client.list_accounts()
    with pytest.raises(MsalResponseError, match="invalid_grant: AADSTS50076"):
        client.acquire_token_silent(account, ["s"])


def test_interactive__select_account_prompt(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    token = make_jwt()
    client.app.interactive = {"access_token": token}

    result = client.acquire_token_interactive(["s"], "AuthFlow", select_account=True)

    assert result.token == token
    call = client.app.calls["interactive"]
    assert call["prompt"] == msal.Prompt.SELECT_ACCOUNT
    assert call["login_hint"] is None
    assert "parent_window_handle" not in call


def test_interactive__broker_uses_console_window(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant", broker=True)
    client.app.interactive = {"access_token": make_jwt()}

    client.acquire_token_interactive(["s"], "AuthFlow", login_hint="alice@contoso.com")

    call = client.app.calls["interactive"]
    assert call["parent_window_handle"] is _FakeApp.CONSOLE_WINDOW_HANDLE
    assert call["login_hint"] == "alice@contoso.com"
    assert call["prompt"] is None


def test_device_code__reports_code_then_returns_token(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    client.app.device_result = {"access_token": make_jwt()}
    shown: list[tuple[str, str, str]] = []

    client.acquire_token_device_code(["s"], lambda *args: shown.append(args))

    assert shown == [("ABCD-1234", "https://microsoft.com/devicelogin", "Enter ABCD-1234")]
    assert client.app.calls["device"]["exit"] is False


def test_device_code__initiation_failure(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    client.app.flow = {"error": "invalid_client", "error_description": "bad client"}
    with pytest.raises(MsalResponseError, match="invalid_client"):
        client.acquire_token_device_code(["s"], lambda *args: None)


def test_device_code__cancelled(fake_app: list[_FakeApp]) -> None:
    client = MsalIdentityClient("client-id", "tenant")
    client.app.device_result = {"error": "authorization_pending"}
    cancel = Event()
    cancel.set()

    with pytest.raises(FlowCancelledError):
        client.acquire_token_device_code(["s"], lambda *args: None, cancel)
    assert client.app.calls["device"]["exit"] is True


def test_print_device_code__stderr(capsys: pytest.CaptureFixture[str]) -> None:
    print_device_code("ABCD-1234", "https://microsoft.com/devicelogin", "")
    err = capsys.readouterr().err
    assert "ABCD-1234" in err and "https://microsoft.com/devicelogin" in err


def test_client__construction_does_not_contact_authority(monkeypatch: pytest.MonkeyPatch) -> None:
    def unreachable(**kwargs: Any) -> None:
        raise ConnectionError("login.microsoftonline.com is unreachable")

    monkeypatch.setattr(msal, "PublicClientApplication", unreachable)
    client = MsalIdentityClient("client-id", "no-such-tenant.invalid")

    with pytest.raises(ConnectionError, match="unreachable"):
        client.list_accounts()
