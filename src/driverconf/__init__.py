"""driverconf: layered, profile-aware configuration for network clients.

Public API:
    - ConfigLoaderBuilder: programmatic overrides, built into a loader
    - DriverConfigLoader: resolves and reloads configuration from sources
    - Option / OptionKind: typed option identifiers
    - Profile: typed, fail-fast access to resolved values
"""

from __future__ import annotations

import logging

from driverconf.builder import (
    ConfigLoaderBuilder,
    ProfileBuilder,
    ProfileOverrides,
    profile_builder,
)
from driverconf.catalog import DefaultOption
from driverconf.coordinator import ReloadCoordinator
from driverconf.errors import (
    ConfigurationError,
    DriverConfigError,
    KindMismatchError,
    OptionNotDefinedError,
    ProfileNotFoundError,
    ReloadError,
    ReservedProfileNameError,
)
from driverconf.loader import DriverConfigLoader
from driverconf.options import Option, OptionKind
from driverconf.profile import DEFAULT_PROFILE, DerivedProfile, Profile, ResolvedProfile
from driverconf.resolve import ResolvedConfig
from driverconf.settings import LoaderSettings
from driverconf.sources import (
    ConfigSource,
    LayeredSource,
    MappingSource,
    SupplierSource,
    TomlFileSource,
)
from driverconf.values import UNSET

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("driverconf")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("driverconf").addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_PROFILE",
    "UNSET",
    "ConfigLoaderBuilder",
    "ConfigSource",
    "ConfigurationError",
    "DefaultOption",
    "DerivedProfile",
    "DriverConfigError",
    "DriverConfigLoader",
    "KindMismatchError",
    "LayeredSource",
    "LoaderSettings",
    "MappingSource",
    "Option",
    "OptionKind",
    "OptionNotDefinedError",
    "Profile",
    "ProfileBuilder",
    "ProfileNotFoundError",
    "ProfileOverrides",
    "ReloadCoordinator",
    "ReloadError",
    "ReservedProfileNameError",
    "ResolvedConfig",
    "ResolvedProfile",
    "SupplierSource",
    "TomlFileSource",
    "profile_builder",
]
