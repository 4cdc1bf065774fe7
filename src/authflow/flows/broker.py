from __future__ import annotations

import sys

from authflow.client import IdentityClient
from authflow.errors import UnsupportedPlatformError
from authflow.mode import broker_supported

from .base import CachedAccountFlow


class BrokerFlow(CachedAccountFlow):
    """Interactive sign-in through the platform's native broker dialog.

    ``client`` must have been created with broker support enabled.

    Raises:
        UnsupportedPlatformError: At construction, on a platform without a broker.
    """

    def __init__(
        self,
        client: IdentityClient,
        scopes: list[str],
        preferred_domain: str | None = None,
        prompt_hint: str = "",
        *,
        platform: str | None = None,
    ) -> None:
        platform = platform or sys.platform
        if not broker_supported(platform):
            raise UnsupportedPlatformError(
                f"The broker auth mode is not available on platform {platform!r}."
            )
        super().__init__(client, scopes, preferred_domain, prompt_hint)
