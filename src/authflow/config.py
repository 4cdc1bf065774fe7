from __future__ import annotations

import os
import tomllib
from datetime import timedelta
from pathlib import Path
from typing import Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError
from .mode import AuthMode
from .scopes import default_scopes

CONFIG_ENV_VAR = "AUTHFLOW_CONFIG"


class Alias(BaseModel):
    """A named set of options, as stored under ``[alias.<name>]`` in a TOML file.

    Unknown keys are rejected so typos in a config file surface immediately.
    """

    model_config = ConfigDict(extra="forbid")

    resource: str | None = None
    client: str | None = None
    domain: str | None = None
    tenant: str | None = None
    scopes: list[str] | None = None
    prompt_hint: str | None = None

    def override(self, other: "Alias") -> "Alias":
        """Return a copy where every field set on ``other`` wins."""
        return Alias(**{**self.model_dump(), **other.model_dump(exclude_none=True)})


def load_alias(config_path: str | Path, name: str) -> Alias:
    """Load alias ``name`` from a TOML config file.

    Raises:
        ConfigurationError: If the file is missing or malformed, or lacks the alias.
    """
    path = Path(config_path).expanduser().resolve()
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Config file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(
            f"Error parsing TOML in config file at '{path}':\n{exc}"
        ) from exc

    aliases = data.get("alias") or {}
    if name not in aliases:
        raise ConfigurationError(f"Alias '{name}' was not found in {config_path}")

    try:
        return Alias.model_validate(aliases[name])
    except ValidationError as exc:
        raise ConfigurationError(f"Alias '{name}' in {config_path} is invalid:\n{exc}") from exc


class AuthSettings(BaseSettings):
    """Settings for one token request.

    Values come from keyword arguments first, then environment variables.
    Only the ``AUTHFLOW_`` prefixed names are read from the environment
    (``AUTHFLOW_RESOURCE``, ``AUTHFLOW_CLIENT``, ``AUTHFLOW_TENANT``,
    ``AUTHFLOW_DOMAIN``, ``AUTHFLOW_PROMPT_HINT``, ``AUTHFLOW_SCOPES``,
    ``AUTHFLOW_MODES``, ``AUTHFLOW_LOCK_TIMEOUT``, ``AUTHFLOW_CACHE_DIR``,
    ``AUTHFLOW_CACHE_ENCRYPTED``).
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHFLOW_",
        case_sensitive=False,
        extra="ignore",
    )

    resource: str | None = None
    client: str | None = None
    tenant: str | None = None
    domain: str | None = None
    prompt_hint: str | None = None
    scopes: list[str] | None = None
    modes: list[str] = Field(default_factory=lambda: ["default"])
    # Seconds to wait for another process's prompt to finish.
    lock_timeout: float = Field(default=15 * 60, gt=0)
    cache_dir: Path = Field(default_factory=lambda: Path.home() / ".authflow")
    cache_encrypted: bool = True

    @field_validator("modes")
    @classmethod
    def _known_modes(cls, v: list[str]) -> list[str]:
        """Every mode must be available on this platform."""
        if not v:
            return ["default"]
        for name in v:
            AuthMode.parse(name)
        return v

    @model_validator(mode="after")
    def _required_fields(self) -> "AuthSettings":
        missing = [f for f in ("resource", "client", "tenant") if not getattr(self, f)]
        if missing:
            raise ValueError(
                "The following fields are required: " + ", ".join(f"--{f}" for f in missing)
            )
        return self

    @property
    def auth_mode(self) -> AuthMode:
        return AuthMode.combine(AuthMode.parse(name) for name in self.modes)

    @property
    def effective_scopes(self) -> list[str]:
        return list(self.scopes) if self.scopes else default_scopes(self.resource)

    @property
    def lock_timeout_delta(self) -> timedelta:
        return timedelta(seconds=self.lock_timeout)

    @classmethod
    def from_options(
        cls,
        options: Alias,
        *,
        alias: str | None = None,
        config_path: str | Path | None = None,
        **extra: Any,
    ) -> "AuthSettings":
        """Merge command line ``options`` over an optional alias from a config file.

        Raises:
            ConfigurationError: If an alias is requested without a config file, or
                the alias cannot be loaded.
            pydantic.ValidationError: If the merged settings are invalid.
        """
        merged = options
        if alias:
            config_path = config_path or os.environ.get(CONFIG_ENV_VAR)
            if not config_path:
                raise ConfigurationError(
                    "The --alias field was given, but no --config was specified."
                )
            merged = load_alias(config_path, alias).override(options)

        values = {k: v for k, v in merged.model_dump().items() if v is not None}
        values.update({k: v for k, v in extra.items() if v is not None})
        return cls(**values)
