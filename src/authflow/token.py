"""Token and auth-flow result models."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Mapping

import jwt

# Claims that may carry the signed-in user's name, in order of preference.
USER_CLAIMS: tuple[str, ...] = ("upn", "preferred_username", "unique_name", "email")


class AuthType(str, Enum):
    """How a token was ultimately obtained."""

    SILENT = "Silent"
    INTERACTIVE = "Interactive"
    DEVICE_CODE_FLOW = "DeviceCodeFlow"


def decode_claims(token: str) -> Mapping[str, Any]:
    """Read the claims of a JWT without verifying its signature.

    Raises:
        jwt.DecodeError: If ``token`` is not a JWT.
    """
    return jwt.decode(
        token,
        options={"verify_signature": False, "verify_exp": False, "verify_aud": False},
    )


@dataclass(frozen=True)
class TokenResult:
    """An access token together with the identity it was issued to.

    ``user``, ``display_name`` and ``expires_on`` are derived from the token
    claims once, when the object is built.
    """

    token: str
    auth_type: AuthType = AuthType.SILENT
    user: str | None = field(init=False)
    display_name: str | None = field(init=False)
    expires_on: datetime = field(init=False)

    def __post_init__(self) -> None:
        claims = decode_claims(self.token)
        user = next((claims[c] for c in USER_CLAIMS if claims.get(c)), None)
        object.__setattr__(self, "user", user)
        object.__setattr__(self, "display_name", claims.get("name"))
        object.__setattr__(
            self,
            "expires_on",
            datetime.fromtimestamp(int(claims.get("exp", 0)), tz=timezone.utc),
        )

    def with_auth_type(self, auth_type: AuthType) -> "TokenResult":
        """Return a copy tagged with ``auth_type``."""
        return replace(self, auth_type=auth_type)

    def valid_for(self, now: datetime | None = None) -> timedelta:
        """Time left before the token expires (negative once expired)."""
        return self.expires_on - (now or datetime.now(timezone.utc))

    @property
    def expiration_timestamp(self) -> int:
        return int(self.expires_on.timestamp())

    def __str__(self) -> str:
        return f"Token cache warm for {self.user} ({self.display_name})"

    def to_json(self) -> str:
        return json.dumps(
            {
                "user": self.user,
                "display_name": self.display_name,
                "token": self.token,
                "expiration_date": self.expiration_timestamp,
            },
            indent=4,
        )


@dataclass
class AuthFlowResult:
    """Outcome of one or more auth flows.

    Errors are kept even when a token was eventually obtained, so callers can
    report every strategy that failed along the way.
    """

    token_result: TokenResult | None = None
    errors: list[Exception] = field(default_factory=list)
    flow_name: str | None = None

    @property
    def success(self) -> bool:
        return self.token_result is not None

    def add_errors(self, errors: list[Exception]) -> None:
        self.errors.extend(errors)
