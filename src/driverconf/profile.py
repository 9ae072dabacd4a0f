"""Profiles: named, inheriting views over resolved configuration.

A ``ResolvedProfile`` is a frozen snapshot produced by one resolution pass.
Holding one pins you to that generation. A ``DerivedProfile`` stores only its
own overrides and re-reads its parent through the owning coordinator, so it
always reflects the generation that is live at the time of the read.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from functools import partial
from typing import TYPE_CHECKING, Any, Final

from driverconf.errors import ConfigurationError, OptionNotDefinedError
from driverconf.options import Option, OptionKind, path_of, split_path
from driverconf.programmatic import ProgrammaticBuilder
from driverconf.tree import (
    ValueTree,
    comparison_key,
    flatten,
    freeze_tree,
    lookup,
    prune,
    set_path,
)
from driverconf.values import freeze_value, hashable, read_value

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping
    from datetime import timedelta

    from driverconf.options import OptionRef

#: Name of the profile every other profile inherits from.
DEFAULT_PROFILE: Final[str] = "default"

Entry = tuple[str, Any]


class Profile(ProgrammaticBuilder, ABC):
    """Typed, fail-fast access to the options of one profile.

    Getters raise ``OptionNotDefinedError`` when nothing resolves and
    ``KindMismatchError`` when the stored value is of another kind. Profiles
    compare and hash by their effective entries, not by identity.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Profile name; derived profiles report their parent's name."""

    @property
    @abstractmethod
    def generation(self) -> int:
        """Resolution pass the effective values come from."""

    @property
    @abstractmethod
    def tree(self) -> ValueTree:
        """Effective tree: defaults merged with this profile, overrides applied."""

    # --- lookups ---

    def is_defined(self, option: OptionRef) -> bool:
        return lookup(self.tree, path_of(option)) is not None

    def _raw(self, path: str) -> Any:
        value = lookup(self.tree, path)
        if value is None:
            raise OptionNotDefinedError(path, self.name)
        return value

    def _get(self, option: OptionRef, kind: OptionKind) -> Any:
        path = path_of(option)
        return read_value(kind, self._raw(path), path)

    def get(self, option: Option) -> Any:
        """Read *option* as its declared kind."""
        if not isinstance(option, Option):
            raise ConfigurationError(
                "get() needs an Option with a declared kind",
                hint="Use a typed getter such as get_string() for raw paths.",
            )
        return self._get(option, option.kind)

    def get_bool(self, option: OptionRef) -> bool:
        return self._get(option, OptionKind.BOOLEAN)

    def get_bool_list(self, option: OptionRef) -> list[bool]:
        return self._get(option, OptionKind.BOOLEAN_LIST)

    def get_int(self, option: OptionRef) -> int:
        return self._get(option, OptionKind.INT)

    def get_int_list(self, option: OptionRef) -> list[int]:
        return self._get(option, OptionKind.INT_LIST)

    def get_long(self, option: OptionRef) -> int:
        return self._get(option, OptionKind.LONG)

    def get_long_list(self, option: OptionRef) -> list[int]:
        return self._get(option, OptionKind.LONG_LIST)

    def get_double(self, option: OptionRef) -> float:
        return self._get(option, OptionKind.DOUBLE)

    def get_double_list(self, option: OptionRef) -> list[float]:
        return self._get(option, OptionKind.DOUBLE_LIST)

    def get_string(self, option: OptionRef) -> str:
        return self._get(option, OptionKind.STRING)

    def get_string_list(self, option: OptionRef) -> list[str]:
        return self._get(option, OptionKind.STRING_LIST)

    def get_string_map(self, option: OptionRef) -> dict[str, str]:
        """Read a map of strings; nested maps flatten to dotted keys."""
        return self._get(option, OptionKind.STRING_MAP)

    def get_bytes(self, option: OptionRef) -> int:
        """Read a size in bytes.

        Kept apart from ``get_long`` so sources may supply sizes in a friendlier
        form once they normalize it to an int.
        """
        return self._get(option, OptionKind.BYTES)

    def get_bytes_list(self, option: OptionRef) -> list[int]:
        return self._get(option, OptionKind.BYTES_LIST)

    def get_duration(self, option: OptionRef) -> timedelta:
        """Read a duration; a bare int is taken as milliseconds."""
        return self._get(option, OptionKind.DURATION)

    def get_duration_list(self, option: OptionRef) -> list[timedelta]:
        return self._get(option, OptionKind.DURATION_LIST)

    def get_comparison_key(self, option: OptionRef) -> frozenset[Entry]:
        """Key for comparing the section rooted at *option* across profiles.

        Only equality and hashing are meaningful: identical sections (same
        options, same values, any order) give equal keys.
        """
        return comparison_key(self._raw(path_of(option)))

    def entry_set(self) -> tuple[Entry, ...]:
        """Every effective leaf entry, inherited ones included, sorted by path."""
        return tuple(flatten(self.tree))

    # --- derivation ---

    @abstractmethod
    def _parent_ref(self) -> Callable[[], ResolvedProfile]:
        """Callable returning the live parent snapshot for derivations."""

    def _overrides(self) -> Mapping[str, Any]:
        return {}

    def with_value(self, path: OptionRef, value: Any) -> DerivedProfile:  # type: ignore[override]
        """Return a derived profile with *value* layered at *path*."""
        key = path_of(path)
        overrides = {
            p: v
            for p, v in self._overrides().items()
            # a later write at a parent path shadows earlier writes beneath it
            if p != key and not p.startswith(key + ".")
        }
        overrides[key] = freeze_value(value, key)
        return DerivedProfile(self._parent_ref(), self.name, overrides)

    # --- structural comparison ---

    def _structure(self) -> frozenset[Entry]:
        # kind-tagged, so True, 1 and 1.0 entries stay apart
        return frozenset((p, hashable(v)) for p, v in self.entry_set())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Profile):
            return NotImplemented
        return self._structure() == other._structure()

    def __hash__(self) -> int:
        return hash(self._structure())


class ResolvedProfile(Profile):
    """Immutable profile snapshot from one resolution pass."""

    def __init__(
        self,
        name: str,
        tree: ValueTree,
        *,
        generation: int = 0,
        resolver: Callable[[str], ResolvedProfile] | None = None,
    ) -> None:
        self._name = name
        self._tree = tree
        self._generation = generation
        # Looks up the live profile of a name; None pins derivations to self.
        self._resolver = resolver
        self._hash: int | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def tree(self) -> ValueTree:
        return self._tree

    def _parent_ref(self) -> Callable[[], ResolvedProfile]:
        if self._resolver is None:
            return lambda: self
        return partial(self._resolver, self._name)

    def __hash__(self) -> int:
        if self._hash is None:
            self._hash = super().__hash__()
        return self._hash

    def __repr__(self) -> str:
        return (
            f"ResolvedProfile(name={self._name!r}, generation={self._generation}, "
            f"entries={len(self.entry_set())})"
        )


class DerivedProfile(Profile):
    """A profile plus a few overrides, tracking the parent's live generation.

    The effective tree is recomputed whenever the parent snapshot changes and
    memoized only for that snapshot.
    """

    def __init__(
        self,
        parent: Callable[[], ResolvedProfile],
        name: str,
        overrides: Mapping[str, Any],
    ) -> None:
        self._parent = parent
        self._name = name
        self._overrides_map = dict(overrides)
        self._memo: tuple[ResolvedProfile, ValueTree] | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> ResolvedProfile:
        return self._parent()

    @property
    def generation(self) -> int:
        return self._parent().generation

    @property
    def parent_generation_seen(self) -> int | None:
        """Generation of the parent the memoized tree was computed from."""
        memo = self._memo
        return None if memo is None else memo[0].generation

    @property
    def overrides(self) -> Mapping[str, Any]:
        return dict(self._overrides_map)

    @property
    def tree(self) -> ValueTree:
        parent = self._parent()
        memo = self._memo
        if memo is not None and memo[0] is parent:
            return memo[1]
        tree = apply_overrides(parent.tree, self._overrides_map)
        self._memo = (parent, tree)
        return tree

    def _parent_ref(self) -> Callable[[], ResolvedProfile]:
        return self._parent

    def _overrides(self) -> Mapping[str, Any]:
        return self._overrides_map

    def __repr__(self) -> str:
        return (
            f"DerivedProfile(name={self._name!r}, "
            f"overrides={sorted(self._overrides_map)!r})"
        )


def apply_overrides(tree: ValueTree, overrides: Mapping[str, Any]) -> ValueTree:
    """Replace (not merge) each overridden path, in insertion order."""
    out = dict(tree)
    for path, value in overrides.items():
        set_path(out, path, value)
    return prune(freeze_tree(out))


def validate_profile_name(name: str) -> str:
    """Profile names are single path segments."""
    if not isinstance(name, str) or len(split_path(name)) != 1:
        raise ConfigurationError(
            f"Invalid profile name {name!r}",
            hint="Profile names are non-empty and contain no dots.",
        )
    return name


def profile_path(name: str, path: str) -> str:
    return f"profiles.{validate_profile_name(name)}.{path}"
