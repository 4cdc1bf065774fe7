from __future__ import annotations

from .base import CachedAccountFlow


class WebFlow(CachedAccountFlow):
    """Interactive sign-in through the system browser."""
