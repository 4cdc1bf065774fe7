from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Callable, Iterator

import pytest

import authflow.lock as lock_module
from authflow.token import TokenResult

from fakes import FakeIdentityClient, make_jwt


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove environment variables to prevent cross-test leakage.

    Yields:
        Iterator[None]: Context manager semantics for pytest.
    """
    to_clear = [k for k in os.environ.keys()]
    for k in to_clear:
        monkeypatch.delenv(k, raising=False)
    yield


@pytest.fixture(autouse=True)
def lock_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep prompt lock files inside the test's temporary directory."""
    directory = tmp_path / "locks"
    monkeypatch.setattr(lock_module, "DEFAULT_LOCK_DIR", directory)
    return directory


@pytest.fixture(autouse=True)
def reset_authflow_logger() -> Iterator[None]:
    """Undo ``setup_logging`` so caplog keeps seeing authflow records."""
    yield
    logger = logging.getLogger("authflow")
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture()
def token_factory() -> Callable[..., TokenResult]:
    """Return a callable building :class:`TokenResult` objects from claims."""

    def _make(**kwargs: Any) -> TokenResult:
        return TokenResult(make_jwt(**kwargs))

    return _make


@pytest.fixture()
def fake_client_cls() -> type[FakeIdentityClient]:
    return FakeIdentityClient


@pytest.fixture()
def jwt_factory() -> Callable[..., str]:
    return make_jwt
