"""Cached account lookup and disambiguation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Mapping

if TYPE_CHECKING:
    from .client import IdentityClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CachedAccount:
    """An account known to the identity client's token cache.

    ``handle`` is the client's own account object; it is passed back to the
    client untouched for silent acquisition or removal.
    """

    username: str
    home_account_id: str | None = None
    handle: Any = field(default=None, compare=False, repr=False)

    @property
    def domain(self) -> str:
        """The part of the username after ``@``, or ``""`` when there is none."""
        _, sep, domain = self.username.rpartition("@")
        return domain if sep else ""

    @classmethod
    def from_msal(cls, account: Mapping[str, Any]) -> "CachedAccount":
        return cls(
            username=account.get("username") or "",
            home_account_id=account.get("home_account_id"),
            handle=account,
        )


class Resolution(str, Enum):
    NONE = "none"
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class AccountResolution:
    """Classification of the cached accounts for a client.

    ``account`` is set only for :attr:`Resolution.UNIQUE`. ``candidates`` are
    the accounts the classification was made over. ``error`` records a cache
    lookup failure, in which case the resolution is :attr:`Resolution.NONE`.
    """

    kind: Resolution
    account: CachedAccount | None = None
    candidates: tuple[CachedAccount, ...] = ()
    error: Exception | None = None

    @property
    def is_unique(self) -> bool:
        return self.kind is Resolution.UNIQUE

    @property
    def is_ambiguous(self) -> bool:
        return self.kind is Resolution.AMBIGUOUS


def classify_accounts(
    accounts: list[CachedAccount], preferred_domain: str | None = None
) -> AccountResolution:
    """Classify ``accounts`` as none, unique or ambiguous.

    The preferred domain narrows the candidates only when at least one account
    matches it; otherwise the full set is classified.
    """
    if not accounts:
        return AccountResolution(Resolution.NONE)

    candidates = list(accounts)
    if preferred_domain:
        wanted = preferred_domain.strip().lower()
        matching = [a for a in accounts if a.domain.lower() == wanted]
        if matching:
            candidates = matching
        else:
            logger.debug(
                "No cached account matches domain %s; considering all %d accounts",
                preferred_domain,
                len(accounts),
            )

    if len(candidates) == 1:
        return AccountResolution(
            Resolution.UNIQUE, account=candidates[0], candidates=tuple(candidates)
        )
    return AccountResolution(Resolution.AMBIGUOUS, candidates=tuple(candidates))


class AccountResolver:
    """Looks up a client's cached accounts and classifies them."""

    def __init__(self, client: "IdentityClient", preferred_domain: str | None = None) -> None:
        self._client = client
        self._preferred_domain = preferred_domain

    def resolve(self) -> AccountResolution:
        try:
            accounts = list(self._client.list_accounts())
        except Exception as exc:
            logger.warning("Could not read cached accounts: %s", exc)
            return AccountResolution(Resolution.NONE, error=exc)

        resolution = classify_accounts(accounts, self._preferred_domain)
        logger.debug(
            "Resolved %d cached account(s) as %s", len(accounts), resolution.kind.value
        )
        return resolution
