"""Reload coordination: one live generation, swapped atomically.

The coordinator is either *resolved* (serving ``current``) or *resolving* (a
pass is in flight while readers keep the previous generation). Concurrent
reload requests fold into the pass already in flight. A failed pass leaves
the previous generation live.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from typing import TYPE_CHECKING

from driverconf._singleflight import singleflight
from driverconf.errors import ReloadError, first_hint
from driverconf.resolve import ResolvedConfig, resolve

if TYPE_CHECKING:
    from collections.abc import Callable
    from concurrent.futures import Future

    from driverconf.profile import ResolvedProfile
    from driverconf.sources import ConfigSource

log = logging.getLogger(__name__)

_RESOLVE = "resolve"


class ReloadCoordinator:
    """Owns the current ``ResolvedConfig`` for one source.

    Several coordinators may coexist (one per client, or per test); nothing
    here is process-global.
    """

    def __init__(
        self,
        source: ConfigSource,
        *,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self.source = source
        self.on_error = on_error
        # Replaced wholesale by a single assignment; readers never see a mix.
        self._current: ResolvedConfig | None = None
        self._lock = threading.Lock()
        self._inflight: dict[str, Future[ResolvedConfig]] = {}

    @property
    def generation(self) -> int:
        """Generation currently served; 0 before the first resolution."""
        current = self._current
        return 0 if current is None else current.generation

    @property
    def is_resolved(self) -> bool:
        return self._current is not None

    @property
    def current(self) -> ResolvedConfig:
        """The live generation, resolving the first one on demand.

        Errors of the first resolution propagate unwrapped: there is no
        previous generation to fall back on.
        """
        current = self._current
        if current is not None:
            return current
        return singleflight(
            _RESOLVE, lock=self._lock, inflight=self._inflight, work=self._initial
        )

    def profile(self, name: str) -> ResolvedProfile:
        """Live lookup of a profile by name in the current generation."""
        return self.current.profile(name)

    def reload(self) -> ResolvedConfig:
        """Resolve a new generation from the source and publish it.

        Raises:
            ReloadError: The pass failed; the previous generation stays live.
        """
        try:
            return singleflight(
                _RESOLVE, lock=self._lock, inflight=self._inflight, work=self._advance
            )
        except Exception as e:
            serving = self.generation
            log.warning(
                "Configuration reload failed; still serving generation %d: %s",
                serving,
                e,
            )
            raise ReloadError(
                f"Configuration reload failed: {e}",
                hint=first_hint(e),
                generation=serving,
            ) from e

    def reload_if_changed(self) -> bool:
        """Reload only when the source reports a change; return True if reloaded."""
        if not self.source.has_changed_since(self.generation):
            return False
        self.reload()
        return True

    async def run_periodic(self, interval_s: float) -> None:
        """Poll the source every *interval_s* seconds until cancelled.

        Failures go to ``on_error`` (or the log) and polling continues.
        """
        if interval_s <= 0:
            raise ValueError("interval_s must be > 0")
        while True:
            await asyncio.sleep(interval_s)
            try:
                await asyncio.to_thread(self.reload_if_changed)
            except Exception as e:
                self._report(e)

    def _report(self, exc: BaseException) -> None:
        if self.on_error is None:
            log.warning("Background configuration reload failed: %s", exc)
            return
        self.on_error(exc)

    def _initial(self) -> ResolvedConfig:
        # Another thread may have finished the first pass while we queued.
        current = self._current
        if current is not None:
            return current
        return self._advance()

    def _advance(self) -> ResolvedConfig:
        generation = self.generation + 1
        log.debug("Resolving configuration generation %d from %r", generation, self.source)
        tree = self.source.fetch()
        config = resolve(tree, generation, resolver=self.profile)
        self._current = config
        log.debug(
            "Published configuration generation %d with profiles %s",
            generation,
            sorted(config.profile_names),
        )
        return config

    def __repr__(self) -> str:
        return f"ReloadCoordinator(source={self.source!r}, generation={self.generation})"
