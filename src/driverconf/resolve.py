"""One resolution pass: merged tree in, named profiles out."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from driverconf.errors import (
    ConfigurationError,
    ProfileNotFoundError,
    ReservedProfileNameError,
)
from driverconf.profile import DEFAULT_PROFILE, ResolvedProfile, validate_profile_name
from driverconf.tree import PROFILES_KEY, ValueTree, merge, prune, without_key
from driverconf.values import UNSET

if TYPE_CHECKING:
    from collections.abc import Callable


@dataclass(frozen=True, eq=False)
class ResolvedConfig:
    """All profiles of one generation.

    Instances are never modified; a reload publishes a new one.
    """

    generation: int
    #: Merged tree with tombstones removed, ``profiles`` table included.
    tree: ValueTree
    profiles: Mapping[str, ResolvedProfile] = field(repr=False)

    @property
    def default_profile(self) -> ResolvedProfile:
        return self.profiles[DEFAULT_PROFILE]

    @property
    def profile_names(self) -> frozenset[str]:
        return frozenset(self.profiles)

    def profile(self, name: str) -> ResolvedProfile:
        """Return the named profile or raise ``ProfileNotFoundError``."""
        try:
            return self.profiles[name]
        except KeyError:
            raise ProfileNotFoundError(name, self.profile_names) from None

    def __contains__(self, name: object) -> bool:
        return name in self.profiles


def split_profiles(tree: ValueTree) -> dict[str, ValueTree]:
    """Compute the effective tree of every profile declared in *tree*.

    The default profile is the root without its ``profiles`` table. Each named
    profile overlays its own table on the default; a tombstone inside a
    profile table hides the inherited value for that profile only.
    """
    root = prune(without_key(tree, PROFILES_KEY))
    out: dict[str, ValueTree] = {DEFAULT_PROFILE: root}

    declared = tree.get(PROFILES_KEY)
    if declared is None or declared is UNSET:
        return out
    if not isinstance(declared, Mapping):
        raise ConfigurationError(
            f"'{PROFILES_KEY}' must be a table of named profiles, "
            f"got {type(declared).__name__}"
        )

    for name in sorted(declared):
        if name == DEFAULT_PROFILE:
            raise ReservedProfileNameError(name)
        validate_profile_name(name)
        body = declared[name]
        if body is UNSET:
            continue
        if not isinstance(body, Mapping):
            raise ConfigurationError(
                f"Profile {name!r} must be a table, got {type(body).__name__}"
            )
        out[name] = prune(merge(root, body))
    return out


def resolve(
    tree: ValueTree,
    generation: int,
    *,
    resolver: Callable[[str], ResolvedProfile] | None = None,
) -> ResolvedConfig:
    """Build the profiles of *generation* from a merged source tree.

    ``resolver`` looks up the live profile of a name; derived profiles use it
    to follow later generations.
    """
    profiles = {
        name: ResolvedProfile(
            name, effective, generation=generation, resolver=resolver
        )
        for name, effective in split_profiles(tree).items()
    }
    return ResolvedConfig(
        generation=generation,
        tree=prune(tree),
        profiles=MappingProxyType(profiles),
    )
