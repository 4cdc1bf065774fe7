from __future__ import annotations

import sys
from typing import Callable

from authflow.client import CodeReadyCallback, IdentityClient, MsalIdentityClient
from authflow.errors import UnsupportedPlatformError
from authflow.mode import AuthMode, broker_supported

from .base import AuthFlow
from .broker import BrokerFlow
from .device_code import DeviceCodeFlow
from .web import WebFlow

# (client_id, tenant_id, broker) -> IdentityClient
ClientFactory = Callable[[str, str, bool], IdentityClient]


def msal_client_factory(token_cache=None) -> ClientFactory:
    """Return a :data:`ClientFactory` creating msal clients that share ``token_cache``."""

    def _build(client_id: str, tenant_id: str, broker: bool) -> IdentityClient:
        return MsalIdentityClient(
            client_id, tenant_id, token_cache=token_cache, broker=broker
        )

    return _build


def create_auth_flows(
    mode: AuthMode,
    client_id: str,
    tenant_id: str,
    scopes: list[str],
    preferred_domain: str | None = None,
    prompt_hint: str = "",
    *,
    client_factory: ClientFactory | None = None,
    on_code_ready: CodeReadyCallback | None = None,
    platform: str | None = None,
) -> list[AuthFlow]:
    """Build the ordered flow list for ``mode``: broker, then web, then device code.

    Args:
        mode: Enabled modes.
        client_id: Application (client) ID.
        tenant_id: Tenant ID.
        scopes: Scopes to request.
        preferred_domain: Domain used to pick a cached account.
        prompt_hint: Text shown with interactive prompts.
        client_factory: Builds the identity client for each flow.
        on_code_ready: Device code instructions callback.
        platform: Platform to check broker support against.

    Returns:
        Flows in the order they should be tried.

    Raises:
        UnsupportedPlatformError: If ``mode`` asks for the broker where none exists.
    """
    build = client_factory or msal_client_factory()
    platform = platform or sys.platform
    flows: list[AuthFlow] = []

    if mode.is_broker():
        if not broker_supported(platform):
            raise UnsupportedPlatformError(
                f"The broker auth mode is not available on platform {platform!r}."
            )
        flows.append(
            BrokerFlow(
                build(client_id, tenant_id, True),
                scopes,
                preferred_domain,
                prompt_hint,
                platform=platform,
            )
        )

    if mode.is_web() or mode.is_device_code():
        client = build(client_id, tenant_id, False)
        if mode.is_web():
            flows.append(WebFlow(client, scopes, preferred_domain, prompt_hint))
        if mode.is_device_code():
            flows.append(
                DeviceCodeFlow(
                    client,
                    scopes,
                    preferred_domain,
                    prompt_hint,
                    on_code_ready=on_code_ready,
                )
            )

    return flows
