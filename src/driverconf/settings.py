"""Settings that steer the loader itself (which file, which table, how often).

These are not driver options: they decide where driver options come from.
They go through a small Pydantic schema so bad environment values fail with a
clear ``ConfigurationError`` instead of surfacing later as odd reload errors.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Any

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from driverconf.errors import ConfigurationError
from driverconf.sources import ConfigSource, MappingSource, TomlFileSource

if TYPE_CHECKING:
    from collections.abc import Mapping

ENV_PREFIX = "DRIVERCONF_"

CONFIG_FILE_VAR = "DRIVERCONF_CONFIG_FILE"
TABLE_VAR = "DRIVERCONF_TABLE"
RELOAD_INTERVAL_VAR = "DRIVERCONF_RELOAD_INTERVAL"
REQUIRE_FILE_VAR = "DRIVERCONF_REQUIRE_FILE"

_ENV_FIELDS = {
    CONFIG_FILE_VAR: "config_file",
    TABLE_VAR: "table",
    RELOAD_INTERVAL_VAR: "reload_interval_s",
    REQUIRE_FILE_VAR: "required",
}

_DOTENV_LOADED: bool = False


class LoaderSettings(BaseModel):
    """Pydantic schema for loader settings."""

    #: TOML file holding option values; None means programmatic/defaults only.
    config_file: Path | None = Field(default=None)
    #: Dotted TOML table to read, e.g. ``tool.driverconf`` inside pyproject.toml.
    table: str | None = Field(default=None)
    #: Seconds between background change checks; 0 disables them.
    reload_interval_s: float = Field(default=0.0, ge=0)
    #: Whether a missing config file fails resolution.
    required: bool = Field(default=True)

    model_config = {"frozen": True, "extra": "forbid"}

    @field_validator("config_file", "table", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        """Treat empty or whitespace-only strings as unset."""
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("table")
    @classmethod
    def validate_table(cls, v: str | None) -> str | None:
        """Reject dotted tables with empty segments."""
        if v is not None and any(not s for s in v.split(".")):
            raise ValueError(f"table must be a dotted name, got {v!r}")
        return v

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, **overrides: Any
    ) -> LoaderSettings:
        """Build settings from ``DRIVERCONF_*`` variables plus explicit overrides.

        Explicit keyword overrides win over the environment. A ``.env`` file is
        loaded first when python-dotenv finds one and ``environ`` is not given.
        """
        if environ is None:
            _try_load_dotenv()
            environ = os.environ
        data: dict[str, Any] = {
            field: environ[var] for var, field in _ENV_FIELDS.items() if var in environ
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return validate_settings(data)


def validate_settings(data: Mapping[str, Any]) -> LoaderSettings:
    """Validate raw settings, mapping Pydantic failures to ConfigurationError."""
    try:
        return LoaderSettings.model_validate(dict(data))
    except ValidationError as e:
        err = e.errors()[0]
        msg = err.get("msg") or "invalid value"
        # Remove "Value error, " prefix if present (Pydantic standard wrapper)
        if msg.startswith("Value error, "):
            msg = msg[13:]
        loc = ".".join(str(part) for part in err.get("loc", ()))
        raise ConfigurationError(
            f"Invalid loader settings: {loc}: {msg}" if loc else msg,
            hint=settings_hint(loc) if loc else None,
        ) from e


def settings_hint(field: str) -> str:
    """Return a compact hint naming the environment variable for a field."""
    for var, name in _ENV_FIELDS.items():
        if name == field:
            return f"Check {var} or the matching LoaderSettings argument."
    return "Check the DRIVERCONF_* environment variables."


def _try_load_dotenv() -> None:
    """Load a ``.env`` file once, if python-dotenv finds one."""
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    _DOTENV_LOADED = True
    load_dotenv(override=False)


def default_source(settings: LoaderSettings | None = None) -> ConfigSource:
    """Base source used when a builder is not given one explicitly."""
    if settings is None:
        settings = LoaderSettings.from_env()
    if settings.config_file is None:
        return MappingSource(name="empty")
    return TomlFileSource(
        settings.config_file, table=settings.table, required=settings.required
    )


def check_environment(environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the current ``DRIVERCONF_*`` variables for troubleshooting."""
    env = os.environ if environ is None else environ
    return {k: v for k, v in sorted(env.items()) if k.startswith(ENV_PREFIX)}
