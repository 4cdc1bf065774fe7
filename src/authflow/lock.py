"""Cross-process guard that keeps concurrent invocations from prompting at once."""

from __future__ import annotations

import hashlib
import logging
import os
import sys
import tempfile
from datetime import timedelta
from enum import Enum
from pathlib import Path
from typing import IO, Final
from warnings import warn

import portalocker
import portalocker.exceptions

from .errors import AbandonedLockWarning, LockTimeout

logger = logging.getLogger(__name__)

DEFAULT_LOCK_TIMEOUT: Final[timedelta] = timedelta(minutes=15)
DEFAULT_LOCK_DIR: Final[Path] = Path(tempfile.gettempdir()) / "authflow-locks"


class LockState(str, Enum):
    UNLOCKED = "unlocked"
    ACQUIRING = "acquiring"
    HELD = "held"
    ABANDONED_BUT_HELD = "abandoned_but_held"
    TIMED_OUT = "timed_out"


def lock_key(resource: str, client: str, tenant: str) -> str:
    """Deterministic name for the (resource, client, tenant) triple.

    The parts are joined with a separator that cannot appear in IDs, so
    distinct triples never share a key.
    """
    raw = "\x1f".join((resource, client, tenant)).encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


class ProcessLock:
    """Named lock shared by every process on the host for one triple.

    The lock file records the holder's PID while held and is emptied on
    release. Finding it non-empty on acquisition means the last holder died
    without releasing; the lock is still granted and a warning is logged.

    Use as a context manager around the auth flow execution only::

        with ProcessLock(resource, client, tenant):
            result = executor.get_token()
    """

    def __init__(
        self,
        resource: str,
        client: str,
        tenant: str,
        *,
        timeout: timedelta = DEFAULT_LOCK_TIMEOUT,
        lock_dir: Path | None = None,
        check_interval: float = 0.25,
    ) -> None:
        self.key = lock_key(resource, client, tenant)
        self.timeout = timeout
        self.lock_dir = lock_dir or DEFAULT_LOCK_DIR
        self.check_interval = check_interval
        self.state = LockState.UNLOCKED
        self.abandoned = False
        self._lock: portalocker.Lock | None = None
        self._handle: IO[str] | None = None

    @property
    def path(self) -> Path:
        return self.lock_dir / f"authflow-{self.key}.lock"

    @property
    def held(self) -> bool:
        return self.state in (LockState.HELD, LockState.ABANDONED_BUT_HELD)

    def acquire(self) -> "ProcessLock":
        """Block until the lock is ours or the timeout elapses.

        Raises:
            LockTimeout: If another process held the lock for the whole timeout.
            RuntimeError: If this instance already holds the lock.
        """
        if self.held:
            raise RuntimeError("ProcessLock is already held by this instance")

        self.state = LockState.ACQUIRING
        self.lock_dir.mkdir(parents=True, exist_ok=True)
        # "a+" so opening the file never truncates the current holder's PID.
        self._lock = portalocker.Lock(
            str(self.path),
            mode="a+",
            timeout=self.timeout.total_seconds(),
            check_interval=self.check_interval,
            fail_when_locked=False,
            flags=portalocker.LockFlags.EXCLUSIVE | portalocker.LockFlags.NON_BLOCKING,
        )
        try:
            handle = self._lock.acquire()
        except portalocker.exceptions.LockException as exc:
            self.state = LockState.TIMED_OUT
            self._lock = None
            raise LockTimeout(
                "Authentication failed. The application did not gain access in the "
                "expected time, possibly because the resource handler was occupied "
                "by another process for a long time."
            ) from exc

        handle.seek(0)
        previous_holder = handle.read().strip()
        self.abandoned = bool(previous_holder)
        if self.abandoned:
            message = (
                "The authentication attempt lock was abandoned "
                f"(last holder: {previous_holder}). Another process may have "
                "exited unexpectedly."
            )
            logger.warning(message)
            warn(message, AbandonedLockWarning, stacklevel=2)

        handle.seek(0)
        handle.truncate(0)
        handle.write(f"{os.getpid()} {sys.argv[0] if sys.argv else ''}")
        handle.flush()
        self._handle = handle
        self.state = LockState.ABANDONED_BUT_HELD if self.abandoned else LockState.HELD
        logger.debug("Acquired prompt lock %s", self.path)
        return self

    def release(self) -> None:
        """Release the lock. Calling it when the lock is not held does nothing."""
        if not self.held or self._lock is None:
            return
        try:
            if self._handle is not None and not self._handle.closed:
                self._handle.seek(0)
                self._handle.truncate(0)
                self._handle.flush()
        finally:
            self._lock.release()
            self._lock = None
            self._handle = None
            self.state = LockState.UNLOCKED
            logger.debug("Released prompt lock %s", self.path)

    def __enter__(self) -> "ProcessLock":
        return self.acquire()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()
