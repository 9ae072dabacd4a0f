"""Configuration loader handed to the client at session construction."""

from __future__ import annotations

import asyncio
from contextlib import suppress
import logging
from typing import TYPE_CHECKING

from driverconf.coordinator import ReloadCoordinator
from driverconf.settings import LoaderSettings, default_source

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from driverconf.profile import ResolvedProfile
    from driverconf.resolve import ResolvedConfig
    from driverconf.sources import ConfigSource

log = logging.getLogger(__name__)


class DriverConfigLoader:
    """Resolves configuration from a source and keeps it fresh.

    Example:
        loader = DriverConfigLoader.from_file("driver.toml")
        config = loader.initial_config()
        timeout = config.default_profile.get_duration(REQUEST_TIMEOUT)
    """

    def __init__(
        self,
        source: ConfigSource,
        *,
        settings: LoaderSettings | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self.settings = settings if settings is not None else LoaderSettings()
        self.coordinator = ReloadCoordinator(source, on_error=on_error)
        self._task: asyncio.Task[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: LoaderSettings | None = None,
        *,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> DriverConfigLoader:
        """Loader over the default source described by *settings* (or the env)."""
        if settings is None:
            settings = LoaderSettings.from_env()
        return cls(default_source(settings), settings=settings, on_error=on_error)

    @classmethod
    def from_file(
        cls, path: str | Path, *, table: str | None = None, required: bool = True
    ) -> DriverConfigLoader:
        settings = LoaderSettings(config_file=path, table=table, required=required)
        return cls.from_settings(settings)

    @property
    def source(self) -> ConfigSource:
        return self.coordinator.source

    @property
    def generation(self) -> int:
        return self.coordinator.generation

    def initial_config(self) -> ResolvedConfig:
        """Resolve the first generation, or return it if already resolved."""
        return self.coordinator.current

    @property
    def current(self) -> ResolvedConfig:
        return self.coordinator.current

    def profile(self, name: str) -> ResolvedProfile:
        return self.coordinator.profile(name)

    def reload(self) -> ResolvedConfig:
        """Force a new generation; raises ``ReloadError`` and keeps the old one on failure."""
        return self.coordinator.reload()

    def reload_if_changed(self) -> bool:
        return self.coordinator.reload_if_changed()

    def start_periodic_reload(self) -> asyncio.Task[None] | None:
        """Start background change checks on the running loop.

        Returns None when ``settings.reload_interval_s`` is 0.
        """
        interval = self.settings.reload_interval_s
        if interval <= 0:
            return None
        if self._task is None or self._task.done():
            log.debug("Starting configuration change checks every %.3gs", interval)
            self._task = asyncio.get_running_loop().create_task(
                self.coordinator.run_periodic(interval)
            )
        return self._task

    async def aclose(self) -> None:
        """Stop background reloads, if any."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    def __repr__(self) -> str:
        return f"DriverConfigLoader(coordinator={self.coordinator!r})"
