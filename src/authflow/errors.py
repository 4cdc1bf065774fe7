"""Exceptions raised and collected while acquiring a token."""

from __future__ import annotations


class AuthFlowError(Exception):
    """Base exception for authflow errors."""


class StrategyProtocolViolation(AuthFlowError):
    """Raised when an auth flow returns ``None`` or something that is not a result."""


class IdentityProviderError(AuthFlowError):
    """A failure from the identity client, wrapped at the strategy boundary.

    The message of the original exception is preserved verbatim so that the
    aggregated error list reads the same as the underlying failure.
    """

    def __init__(self, flow: str, original: BaseException | str) -> None:
        message = str(original)
        super().__init__(message)
        self.flow = flow
        self.original = original if isinstance(original, BaseException) else None

    @classmethod
    def wrap(cls, flow: str, exc: BaseException) -> "IdentityProviderError":
        """Return ``exc`` unchanged if already wrapped, else wrap it."""
        if isinstance(exc, IdentityProviderError):
            return exc
        wrapped = cls(flow, exc)
        wrapped.__cause__ = exc
        return wrapped


class FlowCancelledError(IdentityProviderError):
    """Raised when an interactive poll is aborted by the caller."""


class MsalResponseError(AuthFlowError):
    """Raised when msal returns an error payload instead of a token."""

    def __init__(self, error: str | None, description: str | None = None) -> None:
        self.error = error or "unknown_error"
        self.description = description or "Unknown error"
        super().__init__(f"{self.error}: {self.description}")

    @classmethod
    def from_response(cls, response: dict | None) -> "MsalResponseError":
        response = response or {}
        return cls(response.get("error"), response.get("error_description"))


class LockTimeout(AuthFlowError, TimeoutError):
    """Raised when the prompt lock could not be acquired in time."""


class UnsupportedPlatformError(AuthFlowError):
    """Raised when a strategy is constructed on a platform that cannot run it."""


class ConfigurationError(AuthFlowError):
    """Raised when settings or alias files are invalid."""


class TokenCacheError(AuthFlowError):
    """Raised when the persisted token cache cannot be initialised."""


class AbandonedLockWarning(UserWarning):
    """The previous holder of a prompt lock exited without releasing it."""
