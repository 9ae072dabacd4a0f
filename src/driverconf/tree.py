"""Value trees: nested maps of option values addressed by dotted paths.

Trees handed around between components are frozen (read-only mappings all the
way down). Merging never mutates its inputs; it builds a new tree where the
higher layer wins per path, maps merge recursively, and ``UNSET`` hides
everything the lower layers hold at and beneath its path.
"""

from __future__ import annotations

from collections.abc import Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, TypeAlias

from driverconf.errors import ConfigurationError
from driverconf.options import split_path
from driverconf.values import UNSET, flatten_mapping, freeze_value, hashable

if TYPE_CHECKING:
    from collections.abc import Iterable

ValueTree: TypeAlias = Mapping[str, Any]

EMPTY_TREE: ValueTree = MappingProxyType({})

#: Root key whose children are named profiles.
PROFILES_KEY = "profiles"


def freeze_tree(tree: Mapping[str, Any], what: str = "tree") -> ValueTree:
    """Deep-freeze a nested mapping, validating every leaf."""
    if not isinstance(tree, Mapping):
        raise ConfigurationError(
            f"Expected a mapping at the root of the {what}, got {type(tree).__name__}"
        )
    frozen = freeze_value(tree, what)
    assert isinstance(frozen, Mapping)
    return frozen


def lookup(tree: ValueTree, path: str) -> Any | None:
    """Return the value at *path*, or None when absent or unset."""
    node: Any = tree
    for segment in split_path(path):
        if not isinstance(node, Mapping):
            return None
        node = node.get(segment)
        if node is None or node is UNSET:
            return None
    return node


def set_path(tree: dict[str, Any], path: str, value: Any) -> None:
    """Write *value* at *path* in a mutable tree, creating maps as needed.

    Intermediate nodes that are not maps (scalars, lists, ``UNSET``) are
    replaced by fresh maps; read-only maps are copied before writing.
    """
    segments = split_path(path)
    node = tree
    for segment in segments[:-1]:
        child = node.get(segment)
        if isinstance(child, dict):
            node = child
            continue
        fresh = dict(child) if isinstance(child, Mapping) else {}
        node[segment] = fresh
        node = fresh
    node[segments[-1]] = value


def expand(entries: Mapping[str, Any]) -> ValueTree:
    """Turn a flat ``{dotted path: value}`` mapping into a frozen tree.

    Paths are applied in sorted order so the result does not depend on
    insertion order: a map written at ``a`` is extended, not discarded, by a
    later write at ``a.b``.
    """
    out: dict[str, Any] = {}
    for path in sorted(entries):
        set_path(out, path, freeze_value(entries[path], path))
    return freeze_tree(out)


def merge(lower: ValueTree, higher: ValueTree) -> ValueTree:
    """Overlay *higher* on *lower* and return a new frozen tree."""
    return freeze_tree(_merge(lower, higher))


def _merge(lower: Mapping[str, Any], higher: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(lower)
    for key, value in higher.items():
        below = out.get(key)
        if isinstance(value, Mapping) and isinstance(below, Mapping):
            out[key] = _merge(below, value)
        else:
            out[key] = value
    return out


def merge_layers(layers: Iterable[ValueTree]) -> ValueTree:
    """Merge trees given in ascending priority. Tombstones are kept."""
    out: dict[str, Any] = {}
    for layer in layers:
        out = _merge(out, layer)
    return freeze_tree(out)


def prune(tree: ValueTree) -> ValueTree:
    """Drop ``UNSET`` entries, leaving only defined values."""
    return freeze_tree(_prune(tree))


def _prune(tree: Mapping[str, Any]) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in tree.items():
        if value is UNSET:
            continue
        out[key] = _prune(value) if isinstance(value, Mapping) else value
    return out


def without_key(tree: ValueTree, key: str) -> ValueTree:
    return MappingProxyType({k: v for k, v in tree.items() if k != key})


def flatten(tree: ValueTree) -> list[tuple[str, Any]]:
    """Leaf entries as sorted ``(dotted path, value)`` pairs.

    Lists are leaves. Empty maps contribute nothing.
    """
    return flatten_mapping(tree)


def comparison_key(value: Any) -> frozenset[tuple[str, Any]]:
    """Order-independent key identifying a value or a whole sub-tree."""
    if isinstance(value, Mapping):
        return frozenset((path, hashable(v)) for path, v in flatten_mapping(value))
    return frozenset({("", hashable(value))})
