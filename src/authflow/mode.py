"""Authentication modes and the platform capability table they consult."""

from __future__ import annotations

import sys
from enum import Flag, auto
from functools import reduce
from typing import Final, Iterable, Mapping


class AuthMode(Flag):
    """Set of enabled authentication strategies.

    Members combine with ``|``. The ``all`` and ``default`` sets are not
    members: they depend on what the host supports and are looked up in
    :data:`PLATFORM_CAPABILITIES` at call time.
    """

    BROKER = auto()
    WEB = auto()
    DEVICE_CODE = auto()

    def is_broker(self) -> bool:
        return AuthMode.BROKER in self

    def is_web(self) -> bool:
        return AuthMode.WEB in self

    def is_device_code(self) -> bool:
        return AuthMode.DEVICE_CODE in self

    @classmethod
    def all(cls, platform: str | None = None) -> "AuthMode":
        """Union of every mode supported on ``platform``."""
        return capabilities_for(platform).supported

    @classmethod
    def default(cls, platform: str | None = None) -> "AuthMode":
        """Modes used when the caller does not pick any."""
        return capabilities_for(platform).default

    @classmethod
    def combine(cls, modes: Iterable["AuthMode"]) -> "AuthMode":
        """Fold repeated flags into a single set."""
        return reduce(lambda a, b: a | b, modes, cls(0))

    @classmethod
    def parse(cls, name: str, platform: str | None = None) -> "AuthMode":
        """Resolve a mode name as typed on the command line.

        Raises:
            ValueError: If ``name`` is unknown or not available on ``platform``.
        """
        key = name.strip().lower().replace("-", "").replace("_", "")
        caps = capabilities_for(platform)
        if key == "all":
            return caps.supported
        if key == "default":
            return caps.default
        mode = _NAMES.get(key)
        if mode is None or mode not in caps.supported:
            raise ValueError(
                f"Unsupported auth mode {name!r}. Allowed values: {mode_names(platform)}"
            )
        return mode


class PlatformCapabilities:
    """Which modes a platform supports and which ones it uses by default."""

    def __init__(self, supported: AuthMode, default: AuthMode) -> None:
        if not default:
            raise ValueError("A platform default must enable at least one mode.")
        if default & ~supported:
            raise ValueError("A platform default may only use supported modes.")
        self.supported = supported
        self.default = default

    def __repr__(self) -> str:
        return f"PlatformCapabilities(supported={self.supported!r}, default={self.default!r})"


_NAMES: Final[Mapping[str, AuthMode]] = {
    "broker": AuthMode.BROKER,
    "web": AuthMode.WEB,
    "devicecode": AuthMode.DEVICE_CODE,
}

# Only Windows ships a native broker (WAM) that msal can drive from a console.
PLATFORM_CAPABILITIES: Final[Mapping[str, PlatformCapabilities]] = {
    "win32": PlatformCapabilities(
        supported=AuthMode.BROKER | AuthMode.WEB | AuthMode.DEVICE_CODE,
        default=AuthMode.BROKER | AuthMode.WEB,
    ),
}

FALLBACK_CAPABILITIES: Final[PlatformCapabilities] = PlatformCapabilities(
    supported=AuthMode.WEB | AuthMode.DEVICE_CODE,
    default=AuthMode.WEB,
)


def capabilities_for(platform: str | None = None) -> PlatformCapabilities:
    """Return the capability entry for ``platform`` (defaults to ``sys.platform``)."""
    return PLATFORM_CAPABILITIES.get(platform or sys.platform, FALLBACK_CAPABILITIES)


def broker_supported(platform: str | None = None) -> bool:
    return capabilities_for(platform).supported.is_broker()


def mode_names(platform: str | None = None) -> list[str]:
    """Names accepted by :meth:`AuthMode.parse` on ``platform``."""
    supported = capabilities_for(platform).supported
    return ["all", "default"] + [n for n, m in _NAMES.items() if m in supported]
