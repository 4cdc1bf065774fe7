from __future__ import annotations

import logging
from threading import Event

from authflow.accounts import AccountResolution
from authflow.client import CodeReadyCallback, IdentityClient, print_device_code
from authflow.errors import FlowCancelledError
from authflow.token import AuthType, TokenResult

from .base import CachedAccountFlow

logger = logging.getLogger(__name__)


class DeviceCodeFlow(CachedAccountFlow):
    """Sign-in on another device with a one-time code.

    ``on_code_ready`` receives ``(user_code, verification_uri, message)``
    before the flow starts polling.
    """

    interactive_auth_type = AuthType.DEVICE_CODE_FLOW

    def __init__(
        self,
        client: IdentityClient,
        scopes: list[str],
        preferred_domain: str | None = None,
        prompt_hint: str = "",
        *,
        on_code_ready: CodeReadyCallback | None = None,
    ) -> None:
        super().__init__(client, scopes, preferred_domain, prompt_hint)
        self.on_code_ready = on_code_ready or print_device_code

    def _interactive(
        self, resolution: AccountResolution, cancel: Event | None
    ) -> TokenResult:
        if cancel is not None and cancel.is_set():
            raise FlowCancelledError(self.name, "Device code flow was cancelled.")
        logger.info("%s: waiting for device code sign-in", self.prompt_hint or self.name)
        return self.client.acquire_token_device_code(self.scopes, self.on_code_ready, cancel)
