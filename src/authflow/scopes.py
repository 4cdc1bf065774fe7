from __future__ import annotations

from typing import Final
from urllib.parse import urlparse

DEFAULT_AUTHORITY_HOST: Final[str] = "https://login.microsoftonline.com"
PROMPT_HINT_PREFIX: Final[str] = "AuthFlow"


def authority_from_tenant(tenant_id: str, authority_host: str = DEFAULT_AUTHORITY_HOST) -> str:
    """Return the authority URL for ``tenant_id``.

    Args:
        tenant_id: Tenant ID or domain (e.g., "contoso.onmicrosoft.com").
        authority_host: Absolute URL of the identity provider.

    Returns:
        "<scheme>://<host>/<tenant_id>".

    Raises:
        ValueError: If ``authority_host`` is not absolute or ``tenant_id`` is empty.
    """
    parsed = urlparse(authority_host)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("authority_host must be an absolute URL")
    if not tenant_id or not tenant_id.strip():
        raise ValueError("tenant_id must not be empty")
    return f"{parsed.scheme}://{parsed.netloc}/{tenant_id.strip()}"


def default_scopes(resource: str) -> list[str]:
    return [f"{resource.rstrip('/')}/.default"]


def prefixed_prompt_hint(prompt_hint: str | None) -> str:
    """Prefix a caller supplied prompt hint so prompts are attributable."""
    if not prompt_hint:
        return PROMPT_HINT_PREFIX
    return f"{PROMPT_HINT_PREFIX}: {prompt_hint}"
