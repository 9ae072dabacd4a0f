"""Programmatic configuration: overrides layered above every other source.

Example:
    loader = (
        ConfigLoaderBuilder()
        .with_duration(DefaultOption.REQUEST_TIMEOUT, timedelta(milliseconds=500))
        .in_profile("slow")
        .with_string(DefaultOption.REQUEST_CONSISTENCY, "EACH_QUORUM")
        .build()
    )

Builders are single-owner accumulators and are not thread-safe. ``build()``
snapshots the accumulated entries, so later writes never reach a loader that
was already built.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from driverconf.errors import ReservedProfileNameError
from driverconf.loader import DriverConfigLoader
from driverconf.options import path_of
from driverconf.profile import DEFAULT_PROFILE, profile_path, validate_profile_name
from driverconf.programmatic import ProgrammaticBuilder
from driverconf.settings import LoaderSettings, default_source
from driverconf.sources import ConfigSource, LayeredSource, MappingSource, as_source
from driverconf.tree import PROFILES_KEY
from driverconf.values import freeze_value

if TYPE_CHECKING:
    from collections.abc import Callable

    from driverconf.options import OptionRef
    from driverconf.tree import ValueTree


@dataclass(frozen=True)
class ProfileOverrides:
    """Immutable set of option values for one named profile."""

    values: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def entry_set(self) -> tuple[tuple[str, Any], ...]:
        return tuple(sorted(self.values.items()))


class ProfileBuilder(ProgrammaticBuilder):
    """Accumulates the values of one profile; paths are relative to it."""

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def with_value(self, path: OptionRef, value: Any) -> ProfileBuilder:
        key = path_of(path)
        self._values[key] = freeze_value(value, key)
        return self

    def build(self) -> ProfileOverrides:
        return ProfileOverrides(MappingProxyType(dict(self._values)))


def profile_builder() -> ProfileBuilder:
    """Start the overrides of a profile for ``ConfigLoaderBuilder.with_profile``."""
    return ProfileBuilder()


class _ProfileScope(ProgrammaticBuilder):
    """Writes through to a loader builder under ``profiles.<name>.``."""

    def __init__(self, owner: ConfigLoaderBuilder, name: str) -> None:
        self._owner = owner
        self.name = name

    def with_value(self, path: OptionRef, value: Any) -> _ProfileScope:
        self._owner.with_value(profile_path(self.name, path_of(path)), value)
        return self

    def in_profile(self, name: str) -> _ProfileScope:
        return self._owner.in_profile(name)

    def build(self) -> DriverConfigLoader:
        return self._owner.build()


class ConfigLoaderBuilder(ProgrammaticBuilder):
    """Accumulates programmatic overrides and builds a ``DriverConfigLoader``.

    The resulting source chain is, lowest priority first: ``defaults`` (if
    given), then ``base`` (or the source described by ``settings``), then the
    overrides written here.
    """

    def __init__(
        self,
        base: ConfigSource | Mapping[str, Any] | None = None,
        *,
        defaults: ConfigSource | Mapping[str, Any] | None = None,
        settings: LoaderSettings | None = None,
        on_error: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._base = None if base is None else as_source(base)
        self._defaults = None if defaults is None else as_source(defaults)
        self._settings = settings
        self._on_error = on_error
        self._values: dict[str, Any] = {}
        self._declared: set[str] = set()

    def with_value(self, path: OptionRef, value: Any) -> ConfigLoaderBuilder:
        """Bind *value* at *path*; ``None`` installs a tombstone."""
        key = path_of(path)
        self._values[key] = freeze_value(value, key)
        return self

    def in_profile(self, name: str) -> _ProfileScope:
        """Scope subsequent ``with_*`` calls to profile *name*."""
        self._declared.add(validate_profile_name(name))
        return _ProfileScope(self, name)

    def with_profile(
        self, name: str, overrides: ProfileOverrides
    ) -> ConfigLoaderBuilder:
        """Add every entry of *overrides* under ``profiles.<name>.``."""
        scope = self.in_profile(name)
        for path, value in overrides.entry_set():
            scope.with_value(path, value)
        return self

    def entry_set(self) -> tuple[tuple[str, Any], ...]:
        """Accumulated entries sorted by path; tombstones included."""
        return tuple(sorted(self._values.items()))

    def build(self) -> DriverConfigLoader:
        """Snapshot the overrides and return a loader over the full chain.

        Raises:
            ReservedProfileNameError: A profile named ``default`` was declared.
        """
        if DEFAULT_PROFILE in self._declared:
            raise ReservedProfileNameError(DEFAULT_PROFILE)
        overrides = MappingSource(dict(self._values), name="overrides")
        _check_reserved(overrides.fetch())

        settings = self._settings
        if settings is None:
            settings = LoaderSettings.from_env() if self._base is None else LoaderSettings()
        base = self._base if self._base is not None else default_source(settings)

        layers = [base, overrides]
        if self._defaults is not None:
            layers.insert(0, self._defaults)
        return DriverConfigLoader(
            LayeredSource(*layers), settings=settings, on_error=self._on_error
        )


def _check_reserved(tree: ValueTree) -> None:
    profiles = tree.get(PROFILES_KEY)
    if isinstance(profiles, Mapping) and DEFAULT_PROFILE in profiles:
        raise ReservedProfileNameError(DEFAULT_PROFILE)
